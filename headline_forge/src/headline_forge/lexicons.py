"""
Curated Korean newsroom vocabularies used by the analyzer, generator and evaluator.

The lists are tuned heuristics. Keep them as tuples so they stay immutable
and can be swapped for another language's lexicon in one place.
"""

import re

# =====================================================
# FILTER DEFAULTS
# =====================================================

# Default banned words applied to every title
DEFAULT_BANNED = ("충격", "소름", "대박", "미쳤다", "헉", "레전드")

# Wider list applied to raw provider suggestions before they are trusted
EXTENDED_BANNED = DEFAULT_BANNED + (
    "어떻게?", "이렇게만 하면", "단번에", "초대박", "완전정복",
    "충격적", "반전", "경악", "유출",
)

# =====================================================
# CONTENT ANALYSIS
# =====================================================

COMMON_KEYWORDS = (
    "AI", "인공지능", "생성형", "반도체", "기술", "시장", "투자", "성장", "개발", "혁신",
    "디지털", "플랫폼", "서비스", "솔루션", "데이터", "분석", "전략", "경쟁", "협력", "파트너십",
)

# Tokens too generic to count as frequent key phrases
STOPWORDS = frozenset({
    "있다", "있는", "있으며", "있습니다", "한다", "했다", "하는", "하고", "했다고", "된다", "되는",
    "그리고", "하지만", "또한", "이번", "통해", "대한", "위해", "같은", "것으로", "것이다", "것은",
    "이는", "이를", "등의", "등을", "수준", "가장", "더욱", "특히", "the", "and", "for", "with",
})

PARAGRAPH_SKIP_MARKERS = ("개요", "리드", "넛그래프", "By ", "년 ", "※")

KOREAN_COMPANIES = (
    "삼성", "삼성전자", "LG", "LG전자", "SK", "SK하이닉스", "현대", "현대자동차",
    "네이버", "카카오", "쿠팡", "배달의민족", "토스", "크래프톤", "엔씨소프트",
)

GLOBAL_COMPANIES = (
    "Apple", "Google", "Microsoft", "Amazon", "Meta", "Tesla", "NVIDIA",
    "OpenAI", "Anthropic", "ChatGPT", "GPT", "Claude",
)

LOCATIONS = (
    "서울", "부산", "대구", "인천", "광주", "대전", "울산", "세종",
    "경기", "강원", "충북", "충남", "전북", "전남", "경북", "경남", "제주",
    "미국", "중국", "일본", "유럽", "아시아",
)

SENTIMENT_POSITIVE = (
    "성장", "증가", "상승", "개선", "발전", "혁신", "성공", "기회", "확대", "강화",
    "긍정", "우수", "뛰어난", "탁월", "효과적", "유망", "전망", "기대",
)

SENTIMENT_NEGATIVE = (
    "감소", "하락", "악화", "문제", "위기", "리스크", "우려", "부족", "어려움", "한계",
    "부정", "실패", "손실", "위험", "취약", "불안", "침체", "둔화",
)

SENTIMENT_NEUTRAL = (
    "분석", "검토", "조사", "연구", "발표", "보고", "계획", "전략", "방안", "정책",
)

# =====================================================
# CANDIDATE GENERATION
# =====================================================

GENERIC_HEADINGS = ("개요", "서론", "결론", "요약", "마무리", "끝으로", "참고")

ACTION_WORDS = ("발전", "변화", "증가", "성장", "확대", "혁신")

FALLBACK_TITLES = (
    "AI 기술 발전과 산업 전반에 미치는 영향 분석",
    "최신 기술 동향과 시장 변화, 전문가 의견",
    "디지털 혁신 시대, 새로운 비즈니스 기회 탐색",
)

# =====================================================
# EVALUATION: RELEVANCE / READABILITY
# =====================================================

RELEVANCE_POSITIVE = ("성장", "발전", "혁신", "기회", "성공", "확대", "증가")
RELEVANCE_NEGATIVE = ("위기", "감소", "하락", "문제", "도전", "어려움")

COMPLEX_TERMS = ("패러다임", "시너지", "솔루션", "플랫폼", "인프라스트럭처")
EASY_WORDS = ("분석", "전망", "동향", "현황", "발전", "성장", "변화")
CONCEPT_WORDS = ("전략", "혁신", "생태계", "패러다임", "프레임워크")
CONCRETE_WORDS = ("시장", "기업", "제품", "서비스", "기술")
ABSTRACT_WORDS = ("가치", "비전", "철학", "문화", "정신")
PARTICLES = ("은", "는", "이", "가", "을", "를", "에", "에서", "로", "으로")

# =====================================================
# EVALUATION: SEO
# =====================================================

SEARCH_INTENT_WORDS = (
    "방법", "가이드", "분석", "비교", "리뷰", "전망", "동향", "현황",
    "완벽", "최고", "최신", "2024", "추천", "순위",
)
LOCATION_WORDS = ("한국", "국내", "서울", "부산", "글로벌")
RECENCY_WORDS = ("2024", "최신", "신규", "새로운", "업데이트")
HTML_CHARS = ("<", ">", "&", '"', "'")

# =====================================================
# EVALUATION: ENGAGEMENT
# =====================================================

EMOTIONAL_POSITIVE = (
    "혁신", "성장", "발전", "성공", "기회", "가능성", "미래", "희망",
    "놀라운", "획기적", "뛰어난", "탁월한", "우수한", "최고",
)
PROFESSIONAL_WORDS = ("분석", "전망", "동향", "현황", "트렌드", "전략", "방안", "해결책")
CHALLENGE_WORDS = ("위기", "도전", "문제", "해결", "극복", "대응", "변화", "전환")
EXCESSIVE_WORDS = ("대박", "충격", "소름", "미쳤다", "레전드")
CURIOSITY_PATTERNS = (
    "비밀", "진실", "이유", "방법", "비결", "노하우", "팁",
    "알아야 할", "놓치면 안 되는", "숨겨진", "공개", "밝혀진",
)
CONTRAST_WORDS = ("vs", "대", "비교", "차이", "장단점")
UTILITY_WORDS = (
    "가이드", "방법", "팁", "노하우", "전략", "해결책", "방안",
    "완벽", "실무", "실전", "활용", "적용", "구현", "실행",
)
SYSTEMATIC_WORDS = ("단계", "과정", "절차", "순서", "체계", "프로세스")
RESULT_WORDS = ("결과", "성과", "효과", "개선", "향상", "최적화")
TIME_WORDS = (
    "2024", "최신", "신규", "새로운", "업데이트", "최근",
    "지금", "현재", "오늘", "이번", "올해",
)
TREND_WORDS = ("트렌드", "동향", "흐름", "변화", "전환", "패러다임")
URGENT_WORDS = ("중요", "필수", "핵심", "주목", "관심")
AUTHORITY_WORDS = (
    "전문가", "분석", "연구", "조사", "보고서", "발표",
    "업계", "시장", "기업", "기관", "협회",
)

# =====================================================
# EVALUATION: COMPLIANCE
# =====================================================

CLICKBAIT_SEVERE = (
    "충격", "소름", "대박", "미쳤다", "헉", "레전드", "실화",
    "믿을 수 없는", "절대", "무조건", "100%", "완전",
)
CLICKBAIT_MODERATE = (
    "놀라운", "엄청난", "최고의", "최악의", "비밀", "진실",
    "반드시", "꼭", "모든", "전부",
)
CLICKBAIT_MILD = ("특별한", "독특한", "새로운", "혁신적인", "획기적인")

TONE_POSITIVE = ("성장", "발전", "혁신", "성공", "기회", "미래")
TONE_POSITIVE_NEGATIVE = ("위기", "실패", "문제", "어려움")
TONE_AUTHORITATIVE = ("분석", "연구", "조사", "전문가", "보고서")
TONE_CASUAL = ("꿀팁", "대박", "짱")
TONE_EXTREME = ("최고", "최악", "절대", "완전", "무조건")

DISCRIMINATORY_WORDS = ("남성만", "여성만", "젊은이만", "나이든", "장애인", "외국인")
EXAGGERATED_CLAIMS = ("100% 확실", "절대 실패 없는", "무조건 성공", "완벽한")
FEAR_WORDS = ("위험", "경고", "주의", "조심", "피해야 할")
MEDICAL_CLAIMS = ("치료", "완치", "100% 효과", "부작용 없는", "의학적으로 증명")
FINANCIAL_CLAIMS = ("100% 수익", "무위험", "보장된 수익", "절대 손실 없는")
COPYRIGHT_WORDS = ("무료 다운로드", "크랙", "불법", "해킹")

# =====================================================
# REASONS / RECOMMENDATIONS
# =====================================================

CATEGORY_NAMES = {
    "relevance": "관련성",
    "length": "길이",
    "readability": "가독성",
    "seo": "SEO",
    "engagement": "참여도",
    "compliance": "준수성",
}

CATEGORY_KEYWORDS = {
    "relevance": ("키워드", "관련성", "주제", "내용"),
    "length": ("길이", "자", "단어", "간결", "구체적"),
    "readability": ("가독성", "읽기", "이해", "복잡", "단순"),
    "seo": ("검색", "SEO", "최적화", "키워드"),
    "engagement": ("참여", "관심", "호기심", "클릭", "흥미"),
    "compliance": ("준수", "가이드라인", "금지", "클릭베이트", "브랜드"),
}

REASON_EMOTIONAL_WORDS = ("혁신", "성장", "기회", "전망", "분석", "트렌드")
REASON_CLICKBAIT_WORDS = ("충격", "소름", "대박", "미쳤다")
RECOMMEND_CLICKBAIT_WORDS = ("충격", "소름", "대박", "미쳤다", "헉")
RECOMMEND_EXAGGERATED = ("100%", "절대", "무조건", "완벽한")
RECOMMEND_COMPLEX_TERMS = ("패러다임", "시너지", "솔루션", "플랫폼")
RECOMMEND_INTENT_WORDS = ("방법", "가이드", "분석", "비교", "전망", "동향")
RECOMMEND_EMOTIONAL = ("혁신", "성장", "기회", "전망", "놀라운", "특별한")
RECOMMEND_UTILITY = ("방법", "팁", "가이드", "노하우", "전략")

# =====================================================
# SHARED PATTERNS
# =====================================================

SPECIAL_CHAR_PATTERN = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")
LATIN_WORD_PATTERN = re.compile(r"[A-Za-z]+")
HANGUL_PATTERN = re.compile(r"[가-힣]")
LATIN_PATTERN = re.compile(r"[A-Za-z]")
UNSAFE_META_PATTERN = re.compile(r"[^\w\s가-힣ㄱ-ㅎㅏ-ㅣ.,!?:;-]")

MEANINGLESS_PATTERNS = [
    re.compile(r"^[^가-힣A-Za-z]*$"),      # no letters at all
    re.compile(r"^(.)\1{5,}"),             # same char six or more times
    re.compile(r"^[0-9\s\-_.,!?]*$"),      # digits and punctuation only
]


def count_present(text: str, words) -> int:
    """Number of distinct words from the list that occur in text."""
    return sum(1 for w in words if w in text)


def find_present(text: str, words) -> list[str]:
    """Words from the list that occur in text, in list order."""
    return [w for w in words if w in text]

"""
Centralized semantic lexicon for intent classification and query enhancement

All tables are immutable module-level configuration shared by every request.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

from ..core.models import QueryIntentType, SearchMode, RankingStrategy


@dataclass(frozen=True)
class IntentPatternGroup:
    """Regex group voting for one intent"""
    name: str
    patterns: Tuple[Pattern[str], ...]
    target: Optional[QueryIntentType]  # None: only tags a secondary intent
    confidence: float
    context_keywords: Tuple[str, ...]


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


# Evaluated in order; a later group replaces the best candidate only with a strictly higher confidence
INTENT_PATTERN_GROUPS: Tuple[IntentPatternGroup, ...] = (
    IntentPatternGroup(
        'examples',
        _compile(
            r'\b(how to|example|sample|demo|tutorial|guide|show me)\b',
            r'\b(examples? of|samples? of|demos? of)\b',
        ),
        QueryIntentType.FIND_EXAMPLES, 0.9,
        ('examples', 'tutorials', 'samples'),
    ),
    IntentPatternGroup(
        'debugging',
        _compile(
            r'\b(error|bug|issue|problem|fix|debug|troubleshoot|broken)\b',
            r'\b(not working|fails?|crash|exception)\b',
        ),
        QueryIntentType.DEBUG_ISSUE, 0.85,
        ('debugging', 'error_handling', 'troubleshooting'),
    ),
    IntentPatternGroup(
        'testing',
        _compile(
            r'\b(test|testing|spec|assert|mock|stub|verify|unit test|integration test)\b',
        ),
        None, 0.0,
        ('testing', 'quality_assurance', 'verification'),
    ),
    IntentPatternGroup(
        'patterns',
        _compile(
            r'\b(pattern|design pattern|architecture|architectural pattern)\b',
            r'\b(singleton|factory|observer|strategy|decorator)\b',
            r'\b(patterns? in|patterns? used)\b',
        ),
        QueryIntentType.FIND_PATTERNS, 0.8,
        ('patterns', 'architecture', 'design'),
    ),
    IntentPatternGroup(
        'usage',
        _compile(
            r'\b(usage|used|call|invoke|reference|depend|import)\b',
            r'\b(where.*used|how.*used|who.*uses)\b',
            r'\b(usage of|references to)\b',
        ),
        QueryIntentType.FIND_USAGE, 0.8,
        ('usage', 'dependencies', 'references'),
    ),
    IntentPatternGroup(
        'similarity',
        _compile(
            r'\b(similar|like|equivalent|alternative|comparable)\b',
            r'\b(same as|looks like|works like)\b',
        ),
        QueryIntentType.FIND_SIMILAR, 0.85,
        ('similarity', 'alternatives', 'equivalents'),
    ),
    IntentPatternGroup(
        'quality',
        _compile(
            r'\b(quality|performance|optimize|improve|refactor|clean)\b',
            r'\b(best practice|code smell|maintainability|analyze)\b',
        ),
        QueryIntentType.ANALYZE_QUALITY, 0.8,
        ('quality', 'performance', 'optimization'),
    ),
    IntentPatternGroup(
        'behavior',
        _compile(
            r'\b(what does|how does|behavior|functionality|logic)\b',
            r'\b(works by|operates|functions)\b',
        ),
        QueryIntentType.UNDERSTAND_BEHAVIOR, 0.75,
        ('behavior', 'functionality', 'logic'),
    ),
)

DEFAULT_INTENT = QueryIntentType.FIND_IMPLEMENTATION
DEFAULT_INTENT_CONFIDENCE = 0.7
TESTING_SECONDARY = 'testing'

LANGUAGE_MATCH_BONUS = 0.1
AGENT_OVERRIDE_BONUS = 0.15

# agent_type -> intent forced when nothing more specific was detected
AGENT_INTENT_OVERRIDES: Mapping[str, QueryIntentType] = MappingProxyType({
    'code_review': QueryIntentType.ANALYZE_QUALITY,
    'debugging': QueryIntentType.DEBUG_ISSUE,
})

# Terms appended to a query for each intent (at most two are used)
TECHNICAL_TERMS: Mapping[QueryIntentType, Tuple[str, ...]] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: ('implementation', 'code', 'function', 'method', 'class'),
    QueryIntentType.FIND_EXAMPLES: ('example', 'sample', 'demo', 'tutorial', 'usage'),
    QueryIntentType.DEBUG_ISSUE: ('error handling', 'exception', 'debugging', 'troubleshooting'),
    QueryIntentType.FIND_PATTERNS: ('design pattern', 'architecture', 'structure', 'organization'),
    QueryIntentType.FIND_USAGE: ('usage', 'reference', 'dependency', 'import', 'call'),
    QueryIntentType.FIND_SIMILAR: ('similar', 'alternative', 'equivalent', 'comparable'),
    QueryIntentType.ANALYZE_QUALITY: ('quality', 'metrics', 'performance', 'maintainability'),
    QueryIntentType.UNDERSTAND_BEHAVIOR: ('behavior', 'functionality', 'logic', 'algorithm'),
})

# Keyword category -> related terms (at most one per matched category is used)
CONTEXTUAL_ENHANCEMENTS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'api': ('endpoint', 'service', 'client', 'request', 'response'),
    'database': ('query', 'schema', 'model', 'repository', 'orm'),
    'auth': ('authentication', 'authorization', 'token', 'session', 'login'),
    'ui': ('component', 'interface', 'view', 'render', 'display'),
    'test': ('unit test', 'integration test', 'mock', 'assert', 'verify'),
    'config': ('configuration', 'settings', 'environment', 'parameter'),
})

# Programming language -> file extension used for include patterns
LANGUAGE_EXTENSIONS: Mapping[str, str] = MappingProxyType({
    'javascript': 'js',
    'typescript': 'ts',
    'python': 'py',
    'java': 'java',
    'c#': 'cs',
    'c++': 'cpp',
    'go': 'go',
    'rust': 'rs',
    'php': 'php',
    'ruby': 'rb',
})
KNOWN_LANGUAGES: Tuple[str, ...] = tuple(LANGUAGE_EXTENSIONS)

COMPLEXITY_TECHNICAL_TERMS: Tuple[str, ...] = (
    'function', 'method', 'class', 'interface', 'api', 'database', 'service',
    'component', 'module', 'library', 'framework', 'algorithm', 'pattern',
    'authentication', 'authorization', 'validation', 'configuration',
)
COMPLEXITY_CONJUNCTIONS = re.compile(r'\b(and|or|but|also|plus)\b', re.IGNORECASE)

# Decomposition
DECOMPOSITION_CONJUNCTIONS = re.compile(
    r'\b(?:and|or|also|plus|additionally|furthermore|moreover)\b', re.IGNORECASE
)
SENTENCE_TERMINATORS = re.compile(r'[.!?]')
MIN_FRAGMENT_LENGTH = 3

# Validation
AMBIGUOUS_TERMS: Tuple[str, ...] = ('it', 'this', 'that', 'thing', 'stuff', 'code')
AMBIGUOUS_QUERY_MAX_WORDS = 5
MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 200
UNCLEAR_INTENT_CONFIDENCE = 0.6

SEARCH_MODE_BY_INTENT: Mapping[QueryIntentType, SearchMode] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: SearchMode.SEMANTIC,
    QueryIntentType.FIND_USAGE: SearchMode.HYBRID,
    QueryIntentType.FIND_SIMILAR: SearchMode.HYBRID,
    QueryIntentType.ANALYZE_QUALITY: SearchMode.SEMANTIC,
    QueryIntentType.FIND_PATTERNS: SearchMode.BEHAVIORAL,
    QueryIntentType.UNDERSTAND_BEHAVIOR: SearchMode.BEHAVIORAL,
    QueryIntentType.FIND_EXAMPLES: SearchMode.SEMANTIC,
    QueryIntentType.DEBUG_ISSUE: SearchMode.SYNTACTIC,
})

RANKING_BY_INTENT: Mapping[QueryIntentType, RankingStrategy] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: RankingStrategy.RELEVANCE,
    QueryIntentType.FIND_USAGE: RankingStrategy.RELEVANCE,
    QueryIntentType.FIND_SIMILAR: RankingStrategy.RELEVANCE,
    QueryIntentType.ANALYZE_QUALITY: RankingStrategy.QUALITY,
    QueryIntentType.FIND_PATTERNS: RankingStrategy.RELEVANCE,
    QueryIntentType.UNDERSTAND_BEHAVIOR: RankingStrategy.RELEVANCE,
    QueryIntentType.FIND_EXAMPLES: RankingStrategy.USAGE,
    QueryIntentType.DEBUG_ISSUE: RankingStrategy.RECENCY,
})

EXPECTED_RESULT_TYPES: Mapping[QueryIntentType, Tuple[str, ...]] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: ('function', 'class', 'method'),
    QueryIntentType.FIND_EXAMPLES: ('example', 'tutorial', 'demo'),
    QueryIntentType.DEBUG_ISSUE: ('error_handling', 'exception', 'debugging'),
    QueryIntentType.FIND_PATTERNS: ('pattern', 'architecture', 'design'),
    QueryIntentType.FIND_USAGE: ('usage', 'reference', 'call'),
    QueryIntentType.FIND_SIMILAR: ('similar', 'alternative'),
    QueryIntentType.ANALYZE_QUALITY: ('quality_metrics', 'performance'),
    QueryIntentType.UNDERSTAND_BEHAVIOR: ('behavior', 'logic', 'algorithm'),
})

# Related searches offered when a query is not decomposable
RELATED_QUERY_TEMPLATES: Mapping[QueryIntentType, Tuple[str, ...]] = MappingProxyType({
    QueryIntentType.FIND_IMPLEMENTATION: ('{query} examples', 'usage of {query}'),
    QueryIntentType.FIND_EXAMPLES: ('{query} implementation', '{query} best practices'),
    QueryIntentType.DEBUG_ISSUE: ('{query} error handling', '{query} tests'),
    QueryIntentType.FIND_PATTERNS: ('{query} implementation', 'alternatives to {query}'),
    QueryIntentType.FIND_USAGE: ('{query} implementation', '{query} examples'),
    QueryIntentType.FIND_SIMILAR: ('{query} implementation', '{query} patterns'),
    QueryIntentType.ANALYZE_QUALITY: ('{query} refactoring', '{query} tests'),
    QueryIntentType.UNDERSTAND_BEHAVIOR: ('{query} examples', 'usage of {query}'),
})

"""
Pattern registry for chunk enrichment

Recognizes design patterns, architectural idioms and frameworks in code
chunks. Definitions are fixed at import time and shared read-only by every
caller, so one registry serves concurrent queries.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.4
REGEX_WEIGHT = 0.6


class PatternType(Enum):
    """Types of code patterns"""
    DESIGN_PATTERN = "design_pattern"
    ARCHITECTURAL = "architectural"
    FRAMEWORK_SPECIFIC = "framework_specific"


@dataclass(frozen=True)
class PatternDefinition:
    """
    A recognizable pattern.

    ``keywords`` are matched as lowercase substrings; ``regexes`` are searched
    case-insensitively against the original text.
    """
    name: str
    label: str
    keywords: Tuple[str, ...]
    regexes: Tuple[str, ...]
    description: str = ""


@dataclass
class PatternMatch:
    """Represents a pattern match result"""
    pattern_type: PatternType
    pattern_name: str
    label: str
    confidence: float
    matched_keywords: List[str]
    matched_patterns: List[str]


def _definitions(*items: PatternDefinition) -> Mapping[str, PatternDefinition]:
    return MappingProxyType({item.name: item for item in items})


# Registry order decides label order and ties between equal confidences
PATTERN_DEFINITIONS: Mapping[PatternType, Mapping[str, PatternDefinition]] = MappingProxyType({
    PatternType.DESIGN_PATTERN: _definitions(
        PatternDefinition(
            'singleton', 'Singleton',
            ('singleton', 'getinstance', '_instance'),
            (r'class.*Singleton', r'getInstance\s*\(', r'_instance\s*=\s*None', r'__new__.*cls\._instance'),
            'Ensures a class has only one instance',
        ),
        PatternDefinition(
            'factory', 'Factory',
            ('factory', 'create'),
            (r'class.*Factory', r'create\w+\s*\(', r'@staticmethod.*create'),
            'Creates objects without specifying exact class',
        ),
        PatternDefinition(
            'observer', 'Observer',
            ('observer', 'subscribe'),
            (r'class.*Observer', r'subscribe\s*\(', r'addEventListener', r'addListener'),
            'Defines one-to-many dependency between objects',
        ),
        PatternDefinition(
            'strategy', 'Strategy',
            ('strategy', 'algorithm'),
            (r'class.*Strategy', r'setStrategy\s*\(', r'execute.*Strategy'),
            'Defines family of algorithms and makes them interchangeable',
        ),
        PatternDefinition(
            'decorator', 'Decorator',
            ('decorator', 'wrapper'),
            (r'class.*Decorator', r'@wraps', r'@functools\.wraps'),
            'Adds behavior to objects dynamically',
        ),
    ),
    PatternType.ARCHITECTURAL: _definitions(
        PatternDefinition(
            'mvc', 'MVC',
            ('controller', 'mvc'),
            (r'class.*Controller', r'class.*View\b'),
            'Model-View-Controller architectural pattern',
        ),
        PatternDefinition(
            'repository', 'Repository',
            ('repository', 'dao'),
            (r'class.*Repository', r'class.*DAO', r'find\w*By\w+\s*\('),
            'Data access abstraction pattern',
        ),
    ),
    PatternType.FRAMEWORK_SPECIFIC: _definitions(
        PatternDefinition('react', 'React', ('react', 'jsx', 'usestate', 'useeffect'),
                          (r'import.*from.*react', r'useState\s*\(')),
        PatternDefinition('vue', 'Vue', ('vue',),
                          (r'import.*from.*vue', r'defineComponent\s*\(')),
        PatternDefinition('angular', 'Angular', ('@angular', 'ngoninit'),
                          (r'@Component\s*\(', r'@Injectable\s*\(')),
        PatternDefinition('express', 'Express', ('express',),
                          (r'require\([\'"]express[\'"]\)', r'app\.(get|post|put|delete)\s*\([\'"]/')),
        PatternDefinition('spring', 'Spring', ('springframework', '@restcontroller', '@autowired'),
                          (r'@RestController', r'@Autowired')),
        PatternDefinition('django', 'Django', ('django',),
                          (r'from django', r'class.*\(models\.Model\)')),
        PatternDefinition('fastapi', 'FastAPI', ('fastapi',),
                          (r'from fastapi', r'Depends\s*\(')),
        PatternDefinition('flask', 'Flask', ('flask',),
                          (r'from flask', r'@app\.route')),
    ),
})


@lru_cache(maxsize=256)
def _compiled(regex: str) -> re.Pattern:
    return re.compile(regex, re.IGNORECASE)


def score_definition(
    code: str,
    code_lower: str,
    definition: PatternDefinition,
    pattern_type: PatternType
) -> PatternMatch:
    """Weighted share of matched keywords and regexes, capped at 1.0"""
    matched_keywords = [kw for kw in definition.keywords if kw in code_lower]
    matched_patterns = [r for r in definition.regexes if _compiled(r).search(code)]

    confidence = 0.0
    if definition.keywords:
        confidence += len(matched_keywords) / len(definition.keywords) * KEYWORD_WEIGHT
    if definition.regexes:
        confidence += len(matched_patterns) / len(definition.regexes) * REGEX_WEIGHT

    return PatternMatch(
        pattern_type=pattern_type,
        pattern_name=definition.name,
        label=definition.label,
        confidence=min(confidence, 1.0),
        matched_keywords=matched_keywords,
        matched_patterns=matched_patterns,
    )


class PatternRegistry:
    """Process-wide registry over PATTERN_DEFINITIONS"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def definitions(self) -> Mapping[PatternType, Mapping[str, PatternDefinition]]:
        return PATTERN_DEFINITIONS

    def recognize_patterns(
        self,
        code: str,
        pattern_types: Optional[Sequence[PatternType]] = None,
        min_confidence: float = 0.1
    ) -> List[PatternMatch]:
        """
        Recognize patterns in code

        Args:
            code: Code to analyze
            pattern_types: Specific pattern types to check (all by default)
            min_confidence: Matches at or below this confidence are dropped

        Returns:
            Matches sorted by confidence, registry order on ties
        """
        code_lower = code.lower()
        matches = []
        for pattern_type in pattern_types or list(PatternType):
            for definition in PATTERN_DEFINITIONS.get(pattern_type, {}).values():
                match = score_definition(code, code_lower, definition, pattern_type)
                if match.confidence > min_confidence:
                    matches.append(match)

        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches

    def labels_for(self, code: str, pattern_type: PatternType, min_confidence: float = 0.1) -> List[str]:
        """Display labels of the patterns of one type found in code, in registry order"""
        found = {m.pattern_name for m in self.recognize_patterns(code, [pattern_type], min_confidence)}
        return [
            definition.label
            for name, definition in PATTERN_DEFINITIONS.get(pattern_type, {}).items()
            if name in found
        ]

    def get_pattern_info(self, pattern_type: PatternType, pattern_name: str) -> Optional[PatternDefinition]:
        return PATTERN_DEFINITIONS.get(pattern_type, {}).get(pattern_name)


# Global instance
pattern_registry = PatternRegistry()


def get_pattern_registry() -> PatternRegistry:
    """Get the global pattern registry instance"""
    return pattern_registry

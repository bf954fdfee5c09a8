"""
Tests for unified pattern registry
"""

import pytest
from enhanced_search.pattern_registry import (
    PatternRegistry,
    PatternType,
    get_pattern_registry,
    score_definition,
)


class TestPatternRegistry:

    def setup_method(self):
        self.registry = get_pattern_registry()

    def test_singleton_pattern_recognition(self):
        """Test singleton pattern recognition"""
        code = """
class DatabaseConnection:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def getInstance(self):
        return self._instance
"""

        matches = self.registry.recognize_patterns(code)

        singleton_matches = [m for m in matches if m.pattern_name == 'singleton']
        assert len(singleton_matches) > 0
        assert singleton_matches[0].confidence > 0.5
        assert singleton_matches[0].label == 'Singleton'
        assert '_instance' in singleton_matches[0].matched_keywords

    def test_factory_pattern_recognition(self):
        """Test factory pattern recognition"""
        code = """
class AnimalFactory:
    @staticmethod
    def create_animal(animal_type):
        if animal_type == "dog":
            return Dog()
        elif animal_type == "cat":
            return Cat()
"""

        matches = self.registry.recognize_patterns(code)

        factory_matches = [m for m in matches if m.pattern_name == 'factory']
        assert len(factory_matches) > 0
        assert factory_matches[0].confidence > 0.4

    def test_observer_pattern_recognition(self):
        code = """
class EventObserver:
    def __init__(self, bus):
        bus.subscribe(self.on_event)
"""

        matches = self.registry.recognize_patterns(code, [PatternType.DESIGN_PATTERN])

        observer_matches = [m for m in matches if m.pattern_name == 'observer']
        assert len(observer_matches) > 0
        assert observer_matches[0].confidence > 0.5
        assert observer_matches[0].pattern_type == PatternType.DESIGN_PATTERN

    def test_framework_detection(self):
        """Test framework-specific pattern detection"""
        code = """
from fastapi import FastAPI, Depends
from pydantic import BaseModel

app = FastAPI()

@app.get("/health")
def health_check():
    return {"status": "ok"}
"""

        labels = self.registry.labels_for(code, PatternType.FRAMEWORK_SPECIFIC)
        assert 'FastAPI' in labels
        assert 'Django' not in labels

    def test_labels_follow_registry_order(self):
        code = """
class WidgetFactory:
    _instance = None

    def create_widget(self):
        return Widget()
"""
        assert self.registry.labels_for(code, PatternType.DESIGN_PATTERN) == ['Singleton', 'Factory']

    def test_matches_sorted_by_confidence(self):
        code = "class UserRepository:\n    def findUserById(self, user_id):\n        pass"
        matches = self.registry.recognize_patterns(code)
        confidences = [m.confidence for m in matches]
        assert confidences == sorted(confidences, reverse=True)
        assert matches[0].pattern_name == 'repository'

    def test_min_confidence_is_exclusive(self):
        code = "class DatabaseConnection:\n    _instance = None"
        singleton = [
            m for m in self.registry.recognize_patterns(code, [PatternType.DESIGN_PATTERN])
            if m.pattern_name == 'singleton'
        ][0]
        assert self.registry.recognize_patterns(
            code, [PatternType.DESIGN_PATTERN], min_confidence=singleton.confidence
        ) == []

    def test_matches_carry_their_pattern_type(self):
        code = "from fastapi import FastAPI\n\nclass UserRepository:\n    pass"
        by_name = {m.pattern_name: m for m in self.registry.recognize_patterns(code)}

        assert by_name['fastapi'].pattern_type == PatternType.FRAMEWORK_SPECIFIC
        assert by_name['repository'].pattern_type == PatternType.ARCHITECTURAL

    def test_score_definition(self):
        definition = self.registry.get_pattern_info(PatternType.ARCHITECTURAL, 'repository')
        code = "class UserRepository:\n    pass"

        match = score_definition(code, code.lower(), definition, PatternType.ARCHITECTURAL)
        assert match.pattern_type == PatternType.ARCHITECTURAL
        assert match.label == 'Repository'
        assert match.confidence == pytest.approx(0.4)

    def test_pattern_info_retrieval(self):
        """Test retrieving pattern information"""
        info = self.registry.get_pattern_info(PatternType.DESIGN_PATTERN, 'singleton')

        assert info is not None
        assert info.label == 'Singleton'
        assert info.description
        assert 'singleton' in info.keywords
        assert self.registry.get_pattern_info(PatternType.ARCHITECTURAL, 'missing') is None

    def test_definitions_are_read_only(self):
        with pytest.raises(TypeError):
            self.registry.definitions[PatternType.DESIGN_PATTERN]['builder'] = None

    def test_registry_is_shared(self):
        assert PatternRegistry() is self.registry

    def test_no_false_positives(self):
        """Test that unrelated code doesn't trigger false positives"""
        unrelated_code = """
def calculate_fibonacci(n):
    if n <= 1:
        return n
    return calculate_fibonacci(n-1) + calculate_fibonacci(n-2)
"""

        matches = self.registry.recognize_patterns(unrelated_code)

        high_confidence_matches = [m for m in matches if m.confidence > 0.6]
        assert len(high_confidence_matches) == 0


if __name__ == "__main__":
    pytest.main([__file__])

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from kanjisabi.morph.schema import DictionarySchema, schema_for
from kanjisabi.ocr.models import BBox


class LexicalCategory(Enum):
    Noun = 'Noun'
    ProperNoun = 'ProperNoun'
    SuruVerb = 'SuruVerb'
    NounSuffix = 'NounSuffix'
    Keiyoudoushi = 'Keiyoudoushi'
    Pronoun = 'Pronoun'
    Prefix = 'Prefix'
    AdjectiveIDictForm = 'AdjectiveIDictForm'
    AdjectiveIConjForm = 'AdjectiveIConjForm'
    NegationDictForm = 'NegationDictForm'
    NegationConjForm = 'NegationConjForm'
    Adverb = 'Adverb'
    AdverbificationParticle = 'AdverbificationParticle'
    AdjectivisationParticle = 'AdjectivisationParticle'
    ContinuativeParticle = 'ContinuativeParticle'
    ContinuativeAuxiliary = 'ContinuativeAuxiliary'
    Verb = 'Verb'
    AuxiliaryVerb = 'AuxiliaryVerb'
    AttributiveParticle = 'AttributiveParticle'
    Particle = 'Particle'
    CaseParticle = 'CaseParticle'
    ConnectingParticle = 'ConnectingParticle'
    Sign = 'Sign'
    Other = 'Other'


@dataclass(frozen=True)
class Morpheme:
    """
    One morpheme as returned by the tokenizer.

    ``tags`` is the tokenizer's ``detail`` list. The named views below read
    it through the dictionary schema matching its length, and are None when
    the layout is unknown or the field holds the ``*`` wildcard.
    """
    text: str
    tags: Tuple[str, ...] = ()
    category: Optional[LexicalCategory] = None

    @classmethod
    def from_record(cls, record: Any) -> 'Morpheme':
        """
        Build a morpheme from one tokenizer response record,
        ``{"text"?: str, "detail": [str, ...]}``.

        Raises:
            ValueError: if the record does not have that shape, or has no
                ``text`` and a detail layout the surface cannot be read from.
        """
        if not isinstance(record, dict):
            raise ValueError(f"Expected a JSON object, got {type(record).__name__}")
        detail = record.get('detail')
        if not isinstance(detail, list) or not all(isinstance(tag, str) for tag in detail):
            raise ValueError(f"Record has no list of string details: {record!r}")

        text = record.get('text')
        if text is None:
            schema = schema_for(detail)
            if schema is None:
                raise ValueError(f"Record has no text and {len(detail)} detail fields")
            text = detail[schema.index(schema.surface_field)]
        if not isinstance(text, str):
            raise ValueError(f"Record text is not a string: {record!r}")

        return cls(text=text, tags=tuple(detail))

    @property
    def schema(self) -> Optional[DictionarySchema]:
        return schema_for(self.tags)

    @property
    def char_count(self) -> int:
        return len(self.text)

    def _view(self, field_name: str) -> Optional[str]:
        schema = self.schema
        if schema is None:
            return None
        return schema.value(self.tags, field_name)

    @property
    def lemma(self) -> Optional[str]:
        schema = self.schema
        return self._view(schema.lemma_field) if schema else None

    @property
    def pronunciation(self) -> Optional[str]:
        schema = self.schema
        return self._view(schema.pronunciation_field) if schema else None

    @property
    def inflection_type(self) -> Optional[str]:
        schema = self.schema
        return self._view(schema.inflection_type_field) if schema else None

    @property
    def inflection_form(self) -> Optional[str]:
        schema = self.schema
        return self._view(schema.inflection_form_field) if schema else None

    @property
    def part_of_speech(self) -> Optional[str]:
        """Leading part-of-speech fields up to the first wildcard, e.g. ``名詞-普通名詞-一般``."""
        schema = self.schema
        if schema is None:
            return None
        parts = []
        for name in schema.pos_fields:
            value = schema.value(self.tags, name)
            if value is None:
                break
            parts.append(value)
        return '-'.join(parts) or None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'tags': list(self.tags),
            'category': self.category.value if self.category else None,
            'lemma': self.lemma,
            'pronunciation': self.pronunciation,
            'part_of_speech': self.part_of_speech,
            'inflection_type': self.inflection_type,
            'inflection_form': self.inflection_form,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Morpheme':
        category = data.get('category')
        return cls(
            text=data['text'],
            tags=tuple(data.get('tags') or ()),
            category=LexicalCategory(category) if category else None,
        )


@dataclass(frozen=True)
class VisualMorpheme:
    """A morpheme plus its box on the captured image. ``bbox`` is None when unknown."""
    morpheme: Morpheme
    bbox: Optional[BBox]

    def to_dict(self) -> Dict[str, Any]:
        data = self.morpheme.to_dict()
        data['bbox'] = self.bbox.to_dict() if self.bbox else None
        return data


@dataclass
class AnnotatedRun:
    """
    A run's text and aggregate box with its aligned morphemes. ``morphemes``
    is empty when the analysis failed or disagreed with the OCR text.
    """
    text: str
    bbox: BBox
    morphemes: List[VisualMorpheme] = field(default_factory=list)

    @property
    def is_annotated(self) -> bool:
        return bool(self.morphemes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'bbox': self.bbox.to_dict(),
            'morphemes': [m.to_dict() for m in self.morphemes],
        }

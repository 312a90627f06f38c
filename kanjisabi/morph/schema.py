"""
Field layouts of the grammatical detail tags returned by the tokenizer.

Two dictionaries are supported, told apart by the number of fields:

- IPADIC (9 fields): pos, pos1, pos2, pos3, ctype, cform, base, reading, pron
- UniDic (17 fields): pos, pos1, pos2, pos3, ctype, cform, lform, lemma,
  orth, pron, orthBase, pronBase, goshu, iType, iForm, fType, fForm
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

WILDCARD = '*'


@dataclass(frozen=True)
class DictionarySchema:
    name: str
    fields: Tuple[str, ...]
    surface_field: str
    lemma_field: str
    pronunciation_field: str
    pos_fields: Tuple[str, ...] = ('pos', 'pos1', 'pos2', 'pos3')
    inflection_type_field: str = 'ctype'
    inflection_form_field: str = 'cform'

    @property
    def arity(self) -> int:
        return len(self.fields)

    def index(self, field: str) -> int:
        try:
            return self.fields.index(field)
        except ValueError:
            raise KeyError(f"{self.name} has no field named {field!r}") from None

    def value(self, tags: Sequence[str], field: str) -> Optional[str]:
        """Value of ``field`` in ``tags``, None for the ``*`` wildcard."""
        value = tags[self.index(field)]
        return None if value == WILDCARD else value


IPADIC = DictionarySchema(
    name='ipadic',
    fields=('pos', 'pos1', 'pos2', 'pos3', 'ctype', 'cform', 'base', 'reading', 'pron'),
    surface_field='base',
    lemma_field='base',
    pronunciation_field='pron',
)

UNIDIC = DictionarySchema(
    name='unidic',
    fields=('pos', 'pos1', 'pos2', 'pos3', 'ctype', 'cform', 'lform', 'lemma', 'orth', 'pron',
            'orthBase', 'pronBase', 'goshu', 'iType', 'iForm', 'fType', 'fForm'),
    surface_field='orth',
    lemma_field='lemma',
    pronunciation_field='lform',
)

SCHEMAS = (IPADIC, UNIDIC)


def schema_for(tags: Sequence[str]) -> Optional[DictionarySchema]:
    """Schema matching the length of ``tags``, or None for an unknown layout."""
    for schema in SCHEMAS:
        if schema.arity == len(tags):
            return schema
    return None


def schema_by_name(name: str) -> DictionarySchema:
    for schema in SCHEMAS:
        if schema.name == name:
            return schema
    raise ValueError(f"Unknown dictionary: {name!r} (expected one of {', '.join(s.name for s in SCHEMAS)})")

"""
Lexical categorization of tokenizer details.

Each dictionary schema has its own ordered rule table. A rule is a tuple of
per-field predicates, one per field of the schema (None matches anything),
paired with the resulting category. The table is picked once from the
length of the details, rules are tried top to bottom and the first match
wins. Details no rule matches are ``Other``.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from kanjisabi.morph.models import LexicalCategory as C
from kanjisabi.morph.schema import IPADIC, UNIDIC, DictionarySchema, schema_for


@dataclass(frozen=True)
class Rule:
    predicates: Tuple[Optional[str], ...]
    category: C

    def matches(self, tags: Sequence[str]) -> bool:
        return all(expected is None or expected == actual
                   for expected, actual in zip(self.predicates, tags))


def when(schema: DictionarySchema, category: C, **fields: str) -> Rule:
    """
    Compile a rule declared by field name into its positional form, e.g.
    ``when(IPADIC, C.Sign, pos='記号', pos1='句点')``.
    """
    predicates: List[Optional[str]] = [None] * schema.arity
    for name, expected in fields.items():
        predicates[schema.index(name)] = expected
    return Rule(tuple(predicates), category)


def ipadic(category: C, **fields: str) -> Rule:
    return when(IPADIC, category, **fields)


def unidic(category: C, **fields: str) -> Rule:
    return when(UNIDIC, category, **fields)


IPADIC_RULES = (
    ipadic(C.Verb, pos='動詞'),

    ipadic(C.Keiyoudoushi, pos='名詞', pos1='形容動詞語幹'),
    ipadic(C.Noun, pos='名詞', pos1='一般'),
    ipadic(C.Noun, pos='名詞', pos1='数'),
    ipadic(C.Noun, pos='名詞', pos1='副詞可能'),
    ipadic(C.NounSuffix, pos='名詞', pos1='接尾'),
    ipadic(C.ProperNoun, pos='名詞', pos1='固有名詞'),
    ipadic(C.SuruVerb, pos='名詞', pos1='サ変接続'),
    ipadic(C.Pronoun, pos='名詞', pos1='代名詞'),
    ipadic(C.Noun, pos='名詞'),

    ipadic(C.Prefix, pos='接頭詞'),

    ipadic(C.NegationDictForm, pos='形容詞', cform='基本形', base='ない'),
    ipadic(C.NegationConjForm, pos='形容詞', cform='連用テ接続', base='ない'),
    ipadic(C.NegationConjForm, pos='形容詞', cform='連用タ接続', base='ない'),
    ipadic(C.AdjectiveIDictForm, pos='形容詞', cform='基本形'),
    ipadic(C.AdjectiveIConjForm, pos='形容詞', cform='連用テ接続'),
    ipadic(C.AdjectiveIConjForm, pos='形容詞', cform='連用タ接続'),
    ipadic(C.AdjectiveIConjForm, pos='形容詞'),

    ipadic(C.NegationDictForm, pos='助動詞', cform='基本形', base='ない'),
    ipadic(C.NegationConjForm, pos='助動詞', cform='連用テ接続', base='ない'),
    ipadic(C.NegationConjForm, pos='助動詞', cform='連用タ接続', base='ない'),
    ipadic(C.AttributiveParticle, pos='助動詞', cform='体言接続'),
    ipadic(C.ContinuativeAuxiliary, pos='助動詞', cform='連用形'),
    ipadic(C.ContinuativeAuxiliary, pos='助動詞', cform='連用テ接続'),
    ipadic(C.AuxiliaryVerb, pos='助動詞'),

    ipadic(C.AdverbificationParticle, pos='助詞', pos1='副詞化'),
    ipadic(C.ContinuativeParticle, pos='助詞', pos1='接続助詞', base='て'),
    ipadic(C.AdjectivisationParticle, pos='助詞', pos1='連体化'),
    ipadic(C.CaseParticle, pos='助詞', pos1='格助詞'),
    ipadic(C.ConnectingParticle, pos='助詞', pos1='係助詞'),
    ipadic(C.Particle, pos='助詞'),

    ipadic(C.Adverb, pos='副詞'),

    ipadic(C.Sign, pos='記号', pos1='句点'),
    ipadic(C.Sign, pos='記号', pos1='読点'),
)

UNIDIC_RULES = (
    unidic(C.Verb, pos='動詞'),

    unidic(C.ProperNoun, pos='名詞', pos1='固有名詞'),
    unidic(C.SuruVerb, pos='名詞', pos1='普通名詞', pos2='サ変可能'),
    unidic(C.SuruVerb, pos='名詞', pos1='普通名詞', pos2='サ変形状詞可能'),
    unidic(C.Noun, pos='名詞'),
    unidic(C.Pronoun, pos='代名詞'),
    unidic(C.NounSuffix, pos='接尾辞', pos1='名詞的'),
    unidic(C.Prefix, pos='接頭辞'),
    unidic(C.Keiyoudoushi, pos='形状詞'),

    unidic(C.AttributiveParticle, pos='助動詞', cform='連体形-一般', orth='な'),
    unidic(C.AdverbificationParticle, pos='助動詞', orth='に'),
    unidic(C.ContinuativeAuxiliary, pos='助動詞', cform='連用形-一般'),
    unidic(C.AuxiliaryVerb, pos='助動詞'),

    unidic(C.ContinuativeParticle, pos='助詞', pos1='接続助詞', orth='て'),
    unidic(C.CaseParticle, pos='助詞', pos1='格助詞'),
    unidic(C.ConnectingParticle, pos='助詞', pos1='係助詞'),
    unidic(C.Particle, pos='助詞'),

    unidic(C.NegationDictForm, pos='形容詞', pos1='非自立可能', cform='終止形-一般', lemma='無い'),
    unidic(C.NegationConjForm, pos='形容詞', pos1='非自立可能', cform='連用形-一般', lemma='無い'),
    unidic(C.NegationConjForm, pos='形容詞', pos1='非自立可能', cform='連用形-促音便', lemma='無い'),
    unidic(C.AdjectiveIDictForm, pos='形容詞', cform='終止形-一般'),
    unidic(C.AdjectiveIDictForm, pos='形容詞', cform='連体形-一般'),
    unidic(C.AdjectiveIConjForm, pos='形容詞', cform='連用形-一般'),
    unidic(C.AdjectiveIConjForm, pos='形容詞', cform='連用形-促音便'),

    unidic(C.Adverb, pos='副詞'),

    unidic(C.Sign, pos='補助記号', pos1='句点'),
    unidic(C.Sign, pos='補助記号', pos1='読点'),
)

RULES: Dict[str, Tuple[Rule, ...]] = {
    IPADIC.name: IPADIC_RULES,
    UNIDIC.name: UNIDIC_RULES,
}


def categorize(tags: Sequence[str]) -> C:
    """
    Lexical category of one morpheme's details.

    Args:
        tags: The tokenizer's ``detail`` list (9 fields for IPADIC, 17 for UniDic).

    Returns:
        The category of the first matching rule, ``Other`` when none matches
        or the layout is unknown.
    """
    schema = schema_for(tags)
    if schema is None:
        return C.Other
    for rule in RULES[schema.name]:
        if rule.matches(tags):
            return rule.category
    return C.Other

import pytest

from kanjisabi.morph.models import AnnotatedRun, LexicalCategory, Morpheme, VisualMorpheme
from kanjisabi.morph.schema import IPADIC, UNIDIC, schema_by_name, schema_for
from kanjisabi.ocr.models import BBox

UNIDIC_FUTTA = ['動詞', '一般', '*', '*', '五段-ラ行', '連用形-促音便', 'フル', '降る', '降っ', 'フッ',
                '降る', 'フル', '和', '*', '*', '*', '*']
IPADIC_FURU = ['動詞', '自立', '*', '*', '五段・ラ行', '基本形', '降る', 'フル', 'フル']


def test_schema_selection_by_length():
    assert schema_for(IPADIC_FURU) is IPADIC
    assert schema_for(UNIDIC_FUTTA) is UNIDIC
    assert schema_for(['名詞']) is None
    assert schema_by_name('unidic') is UNIDIC
    with pytest.raises(ValueError):
        schema_by_name('jumandic')


def test_record_text_wins_over_detail():
    morpheme = Morpheme.from_record({'text': '降っ', 'detail': IPADIC_FURU})

    assert morpheme.text == '降っ'
    assert morpheme.tags == tuple(IPADIC_FURU)


def test_unidic_surface_comes_from_orth():
    assert Morpheme.from_record({'detail': UNIDIC_FUTTA}).text == '降っ'


def test_ipadic_surface_falls_back_to_base_form():
    assert Morpheme.from_record({'detail': IPADIC_FURU}).text == '降る'


@pytest.mark.parametrize('record', [
    [],
    {'text': '雨'},
    {'detail': '名詞'},
    {'detail': ['名詞', 1]},
    {'detail': ['名詞', '一般']},
    {'text': 3, 'detail': IPADIC_FURU},
])
def test_malformed_records_are_rejected(record):
    with pytest.raises(ValueError):
        Morpheme.from_record(record)


def test_unidic_views():
    morpheme = Morpheme.from_record({'detail': UNIDIC_FUTTA})

    assert morpheme.lemma == '降る'
    assert morpheme.pronunciation == 'フル'
    assert morpheme.part_of_speech == '動詞-一般'
    assert morpheme.inflection_type == '五段-ラ行'
    assert morpheme.inflection_form == '連用形-促音便'


def test_ipadic_views():
    morpheme = Morpheme('降る', tuple(IPADIC_FURU))

    assert morpheme.lemma == '降る'
    assert morpheme.pronunciation == 'フル'
    assert morpheme.part_of_speech == '動詞-自立'


def test_wildcards_read_as_none():
    morpheme = Morpheme('に', ('助詞', '格助詞', '*', '*', '*', '*', 'に', 'ニ', 'ニ'))

    assert morpheme.inflection_type is None
    assert morpheme.inflection_form is None
    assert morpheme.part_of_speech == '助詞-格助詞'


def test_unknown_layout_has_no_views():
    morpheme = Morpheme('雨', ('名詞',))

    assert morpheme.lemma is None
    assert morpheme.part_of_speech is None


def test_dict_round_trip_keeps_category():
    morpheme = Morpheme('降っ', tuple(UNIDIC_FUTTA), LexicalCategory.Verb)

    data = morpheme.to_dict()

    assert data['category'] == 'Verb'
    assert data['lemma'] == '降る'
    assert Morpheme.from_dict(data) == morpheme


def test_annotated_run_serialization():
    run = AnnotatedRun('降った', BBox(0, 0, 90, 30), [
        VisualMorpheme(Morpheme('降っ', category=LexicalCategory.Verb), BBox(0, 0, 60, 30)),
        VisualMorpheme(Morpheme('た'), None),
    ])

    data = run.to_dict()

    assert data['bbox'] == {'x': 0, 'y': 0, 'w': 90, 'h': 30}
    assert [m['text'] for m in data['morphemes']] == ['降っ', 'た']
    assert data['morphemes'][0]['bbox'] == {'x': 0, 'y': 0, 'w': 60, 'h': 30}
    assert data['morphemes'][1]['bbox'] is None
    assert data['morphemes'][1]['category'] is None
    assert run.is_annotated
    assert not AnnotatedRun('雨', BBox(0, 0, 30, 30)).is_annotated

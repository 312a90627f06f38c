import asyncio

from kanjisabi.morph.models import LexicalCategory, Morpheme
from kanjisabi.ocr.models import BBox, OCRWord, Run
from kanjisabi.pipeline.annotator import CapturePipeline, annotate_run, is_consistent
from kanjisabi.util.config.configuration import UnanchoredBoxStrategy


class StubAnalyzer:
    def __init__(self, responses, delays=None):
        self.responses = responses
        self.delays = delays or {}
        self.calls = []

    async def analyze(self, text):
        self.calls.append(text)
        await asyncio.sleep(self.delays.get(text, 0))
        return [m if isinstance(m, Morpheme) else Morpheme(m) for m in self.responses.get(text, [])]


def word(text, word_num, x, line=1, conf=95.0, w=None):
    return OCRWord(text=text, line_id=(1, 1, 1, line), word_num=word_num, conf=conf,
                   bbox=BBox(x, 10, w if w is not None else 30 * len(text), 30))


def test_is_consistent_counts_characters():
    assert is_consistent('降った', [Morpheme('降っ'), Morpheme('た')])
    assert not is_consistent('きれいな', [Morpheme('きれい')])
    assert not is_consistent('雨', [])


def test_降った_with_every_character_anchored():
    run = Run((word('降', 1, 100), word('っ', 2, 130), word('た', 3, 160)))
    analyzer = StubAnalyzer({'降った': ['降っ', 'た']})

    annotated = asyncio.run(annotate_run(run, analyzer))

    assert annotated.text == '降った'
    assert [m.morpheme.text for m in annotated.morphemes] == ['降っ', 'た']
    assert annotated.morphemes[0].bbox == BBox(100, 10, 60, 30)
    assert annotated.morphemes[1].bbox == BBox(160, 10, 30, 30)


def test_inconsistent_analysis_keeps_only_the_box():
    run = Run((word('きれいな', 1, 0),))
    analyzer = StubAnalyzer({'きれいな': ['きれ', 'な']})

    annotated = asyncio.run(annotate_run(run, analyzer))

    assert annotated.morphemes == []
    assert annotated.bbox == BBox(0, 2, 120, 7)


def test_failed_analysis_keeps_only_the_box():
    run = Run((word('雨', 1, 0),))

    annotated = asyncio.run(annotate_run(run, StubAnalyzer({})))

    assert annotated.morphemes == []
    assert annotated.bbox == BBox(0, 10, 30, 30)


def test_uncategorized_morphemes_are_categorized():
    tags = ('動詞', '自立', '*', '*', '五段・ラ行', '基本形', '降る', 'フル', 'フル')
    run = Run((word('降る', 1, 0),))
    analyzer = StubAnalyzer({'降る': [Morpheme('降る', tags)]})

    annotated = asyncio.run(annotate_run(run, analyzer))

    assert annotated.morphemes[0].morpheme.category == LexicalCategory.Verb


def test_categories_from_the_analyzer_are_kept():
    run = Run((word('雨', 1, 0),))
    analyzer = StubAnalyzer({'雨': [Morpheme('雨', (), LexicalCategory.ProperNoun)]})

    annotated = asyncio.run(annotate_run(run, analyzer))

    assert annotated.morphemes[0].morpheme.category == LexicalCategory.ProperNoun


def test_unanchored_strategy_is_applied():
    run = Run((word('降った', 1, 100),))
    analyzer = StubAnalyzer({'降った': ['降っ', 'た']})

    unknown = asyncio.run(annotate_run(run, analyzer, UnanchoredBoxStrategy.UNKNOWN))
    interpolated = asyncio.run(annotate_run(run, analyzer, UnanchoredBoxStrategy.INTERPOLATE))

    assert unknown.morphemes[1].bbox is None
    assert interpolated.morphemes[1].bbox == BBox(160, 10, 30, 30)


def test_capture_annotates_every_run_and_conserves_characters():
    words = [
        word('雨', 1, 0), word('が', 2, 30), word('abc', 3, 60), word('降った', 4, 150),
        word('きれいな', 1, 0, line=2),
    ]
    analyzer = StubAnalyzer({
        '雨が': ['雨', 'が'],
        '降った': ['降っ', 'た'],
        'きれいな': ['きれい'],
    })

    results = asyncio.run(CapturePipeline(analyzer).process(words))

    assert [r.text for r in results] == ['雨が', '降った', 'きれいな']
    assert sorted(analyzer.calls) == sorted(['雨が', '降った', 'きれいな'])
    assert results[2].morphemes == []
    for result in results:
        if result.is_annotated:
            assert sum(len(m.morpheme.text) for m in result.morphemes) == len(result.text)


def test_runs_are_analysed_concurrently():
    words = [word('雨', 1, 0), word('降った', 1, 0, line=2)]
    analyzer = StubAnalyzer({'雨': ['雨'], '降った': ['降っ', 'た']}, delays={'雨': 0.2, '降った': 0.2})

    async def scenario():
        loop = asyncio.get_running_loop()
        start = loop.time()
        results = await CapturePipeline(analyzer).process(words)
        return results, loop.time() - start

    results, elapsed = asyncio.run(scenario())

    assert len(results) == 2
    assert elapsed < 0.35


def test_outdated_capture_is_discarded():
    slow = [word('雨', 1, 0)]
    fast = [word('降った', 1, 0)]
    pipeline = CapturePipeline(StubAnalyzer({'雨': ['雨'], '降った': ['降っ', 'た']}, delays={'雨': 0.1}))

    async def scenario():
        first = asyncio.create_task(pipeline.process(slow))
        await asyncio.sleep(0)
        second = await pipeline.process(fast)
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is None
    assert [r.text for r in second] == ['降った']
    assert pipeline.current_generation == 2


def test_process_tsv():
    tsv = "\n".join([
        "5\t1\t1\t1\t1\t1\t100\t10\t30\t30\t96\t降",
        "5\t1\t1\t1\t1\t2\t130\t10\t30\t30\t93\tっ",
        "5\t1\t1\t1\t1\t3\t160\t10\t30\t30\t91\tた",
        "5\t1\t1\t1\t1\t4\t190\t10\t30\t30\t95\t!",
    ])
    pipeline = CapturePipeline(StubAnalyzer({'降った': ['降っ', 'た']}))

    results = asyncio.run(pipeline.process_tsv(tsv))

    assert len(results) == 1
    assert results[0].bbox == BBox(100, 10, 90, 30)
    assert [m.bbox for m in results[0].morphemes] == [BBox(100, 10, 60, 30), BBox(160, 10, 30, 30)]


def test_empty_capture():
    assert asyncio.run(CapturePipeline(StubAnalyzer({})).process([])) == []

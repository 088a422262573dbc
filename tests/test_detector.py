from cowin_notifier.detector import ChangeDetector

from factories import slot


def test_identical_result_is_novel_only_once():
    detector = ChangeDetector()
    result = (slot("A"), slot("B"))

    assert detector.is_novel(8, result) is True
    assert detector.is_novel(8, (slot("A"), slot("B"))) is False


def test_reordered_slots_count_as_change():
    detector = ChangeDetector()
    detector.is_novel(8, (slot("A"), slot("B")))

    assert detector.is_novel(8, (slot("B"), slot("A"))) is True
    assert detector.last_seen(8) == (slot("B"), slot("A"))


def test_any_field_change_is_novel():
    detector = ChangeDetector()
    detector.is_novel(8, (slot("A", capacity="5"),))

    assert detector.is_novel(8, (slot("A", capacity="4"),)) is True
    assert detector.is_novel(8, (slot("A", capacity="4", vaccine_name=None),)) is True


def test_locations_are_tracked_separately():
    detector = ChangeDetector()
    result = (slot("A"),)

    assert detector.is_novel(8, result) is True
    assert detector.is_novel(49, result) is True
    assert detector.is_novel(8, result) is False
    assert len(detector) == 2
    assert detector.last_seen(64) is None


def test_list_results_compare_by_value():
    detector = ChangeDetector()

    assert detector.is_novel(8, [slot("A")]) is True
    assert detector.is_novel(8, [slot("A")]) is False
    assert detector.is_novel(8, (slot("A"),)) is False
    assert detector.last_seen(8) == (slot("A"),)

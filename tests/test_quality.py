import pytest

from rcmt.exceptions import ValidationError
from rcmt.quality import QualityScorer, assess_commit_quality, is_conventional


def test_generic_fix_scores_low_and_is_not_well_formed():
    result = assess_commit_quality("fix", threshold=7)

    assert result.score <= 2
    assert result.is_well_formed is False
    assert "too generic" in result.reasons
    assert "too short" in result.reasons
    assert "not conventional format" in result.reasons


def test_conventional_message_scores_ten():
    result = assess_commit_quality("feat(auth): add JWT refresh handling")

    assert result.score == 10
    for threshold in range(1, 11):
        assert assess_commit_quality(
            "feat(auth): add JWT refresh handling", threshold
        ).is_well_formed


def test_reason_order_follows_rubric():
    result = assess_commit_quality("feat(auth): add JWT refresh handling")
    assert result.reasons == (
        "follows conventional format",
        "appropriate length",
        "descriptive",
        "uses present tense",
        "no trailing period",
    )
    assert result.reason.startswith("follows conventional format, ")


@pytest.mark.parametrize(
    "message",
    ["update", "UPDATE", "Fix.", "wip commit", "  initial  ", "Test"],
)
def test_generic_messages_lose_descriptive_points(message):
    assert "too generic" in assess_commit_quality(message).reasons


def test_generic_check_uses_whole_message():
    result = assess_commit_quality("update readme links")
    assert "descriptive" in result.reasons


def test_too_long_subject_tagged_separately():
    result = assess_commit_quality("feat: " + "x" * 80)
    assert "too long" in result.reasons
    assert "appropriate length" not in result.reasons


def test_only_first_line_counts_for_format_and_length():
    message = "fix(api): handle empty payloads\n\nLonger body text that ends with a period."
    result = assess_commit_quality(message)
    assert result.score == 10


def test_present_tense_heuristic_after_prefix():
    assert "uses present tense" in assess_commit_quality("fix: handle timeouts").reasons
    assert "not present tense" in assess_commit_quality("fix: Handle timeouts").reasons
    # Without a prefix the first character is checked directly.
    assert "uses present tense" in assess_commit_quality("handle timeouts").reasons


def test_trailing_period_costs_one_point():
    with_period = assess_commit_quality("fix(io): close file handles.")
    without = assess_commit_quality("fix(io): close file handles")
    assert without.score - with_period.score == 1
    assert "trailing period" in with_period.reasons


def test_empty_scope_is_not_conventional():
    assert not is_conventional("feat(): add thing")
    assert is_conventional("feat(ui): add thing")
    assert not is_conventional("feature: add thing")


def test_assessment_is_deterministic_and_bounded():
    scorer = QualityScorer(7)
    for message in ["", ".", "fix", "Added stuff.", "chore: bump deps", "x" * 200]:
        first = scorer.assess(message)
        second = scorer.assess(message)
        assert first == second
        assert 0 <= first.score <= 10


@pytest.mark.parametrize("threshold", range(1, 11))
def test_well_formed_matches_threshold(threshold):
    for message in ["fix", "Update docs.", "docs: update install guide", "refactor: Split module"]:
        result = assess_commit_quality(message, threshold)
        assert result.is_well_formed == (result.score >= threshold)


@pytest.mark.parametrize("threshold", [0, 11, -3])
def test_threshold_out_of_range_rejected(threshold):
    with pytest.raises(ValidationError):
        QualityScorer(threshold)


def test_present_tense_check_is_ascii_only():
    assert "not present tense" in assess_commit_quality("fix: éviter le crash").reasons
    assert "not present tense" in assess_commit_quality("fix: 2fa flow").reasons

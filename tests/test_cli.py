import pytest

from ranking_proximity.cli import QuerySession, build_index, build_parser, main
from ranking_proximity.index import InvertedIndex
from ranking_proximity.retriever import ProximityRetriever


def scripted(*lines):
    responses = iter(lines)

    def input_fn(prompt):
        return next(responses)

    return input_fn


@pytest.fixture
def near_far():
    return ProximityRetriever.from_texts(
        {"near": "cat dog red blue green", "far": "cat red blue green dog", "other": "fish"}
    )


def run_session(index, *lines, **kwargs):
    output = []
    QuerySession(index, input_fn=scripted(*lines), output=output.append, **kwargs).run()
    return output


def test_cosine_results_are_listed(animal_index):
    output = run_session(animal_index, "cat dog", "", "")
    assert output[0].startswith("Now able to process queries")
    lines = [line for line in output if line.startswith("1.  ")]
    assert lines == ["1.  doc1                 Score: 0.94868"]


def test_proximity_results_show_components(near_far):
    output = run_session(near_far, "cat dog", "", "")
    line = next(line for line in output if line.startswith("2.  far"))
    assert "(Vector: " in line
    assert "Proximity: 4.00000)" in line


def test_no_results(animal_index):
    output = run_session(animal_index, "zebra", "")
    assert "\nNo matching documents found." in output


def test_paging(near_far):
    output = run_session(near_far, "cat dog", "m", "m", "", "", page_size=1)
    assert any(line.startswith("1.  near") for line in output)
    assert any(line.startswith("2.  far") for line in output)
    assert "No more retrievals." in output


def test_bad_commands(animal_index):
    output = run_session(animal_index, "cat dog", "x", "9", "", "")
    assert "Unknown command." in output
    assert "No such document number: 9" in output


def test_show_document(animal_index):
    output = run_session(animal_index, "cat", "1", "", "", show_chars=5)
    assert "\n--- doc1 ---" in output
    assert "cat d" in output


def test_redo_requires_feedback(near_far):
    output = run_session(near_far, "cat dog", "r", "", "", feedback=True)
    assert "Need to first view some documents and provide feedback." in output


def test_binary_feedback_session(near_far):
    output = run_session(near_far, "cat dog", "2", "maybe", "n", "1", "y", "r", "", "", feedback=True)
    assert "Executing New Expanded and Reweighted Query: " in output
    assert "Positive docs: [DocumentReference('near')]\nNegative docs: [DocumentReference('far')]" in output


def test_rated_feedback_session(near_far):
    output = run_session(
        near_far, "cat dog", "1", "0.5", "2", "abc", "2", "3", "2", "-0.25", "", "", feedback=True, rated=True
    )
    assert "Added to relevant documents with rating: 0.5" in output
    assert "Invalid number format. No feedback recorded." in output
    assert "Invalid rating. Must be between -1 and +1. Using 0." in output
    assert "Added to irrelevant documents with rating: -0.25" in output


def test_end_of_input_exits(animal_index):
    def closed(prompt):
        raise EOFError

    output = []
    QuerySession(animal_index, input_fn=closed, output=output.append).run()
    assert len(output) == 1


def test_parser_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("RANKING_PROXIMITY_STRATEGY", "min_span")
    monkeypatch.setenv("RANKING_PROXIMITY_ORDER_PENALTY", "3")
    args = build_parser().parse_args(["docs"])
    assert args.strategy == "min_span"
    assert args.order_penalty == 3.0
    assert args.max_distance == 1000.0


@pytest.mark.parametrize(
    "extra, expected_cls",
    [
        ([], ProximityRetriever),
        (["--cosine-only"], InvertedIndex),
    ],
)
def test_build_index(corpus_dir, extra, expected_cls):
    args = build_parser().parse_args([str(corpus_dir), "--quiet", "--strategy", "min_span", *extra])
    index = build_index(args)
    assert type(index) is expected_cls
    assert index.document_count == 4
    if expected_cls is ProximityRetriever:
        assert index.proximity_config.strategy == "min_span"


def test_main(monkeypatch, capsys, corpus_dir):
    responses = iter(["lazy dog", "", ""])
    monkeypatch.setattr("builtins.input", lambda prompt: next(responses))
    assert main([str(corpus_dir), "--quiet", "--feedback"]) == 0
    captured = capsys.readouterr()
    assert "Top 10 matching Documents" in captured.out
    assert "a.txt" in captured.out


def test_main_rejects_missing_directory(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "missing"), "--quiet"])
    assert excinfo.value.code == 2

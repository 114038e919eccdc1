"""Message-channel contract: progress messages then exactly one terminal message."""
from analysis.worker import run_analysis_message


def _collect(request):
    messages = []
    run_analysis_message(request, messages.append)
    return messages


def test_successful_request_posts_progress_then_result(complex_pdb_text):
    messages = _collect({"type": "analyze", "content": complex_pdb_text, "filename": "c.pdb"})
    kinds = [m["type"] for m in messages]
    assert kinds[-1] == "result"
    assert kinds.count("result") == 1 and "error" not in kinds
    assert set(kinds[:-1]) == {"progress"}
    first = messages[0]["data"]
    assert first["status"] == "parsing"
    assert messages[-2]["data"]["status"] == "complete"
    data = messages[-1]["data"]
    assert data["success"] is True
    assert data["filename"] == "c.pdb"
    assert data["stats"]["total_hbond"] == 1
    assert data["interactions"][0]["salt_bridge"] is None


def test_params_override_applies(complex_pdb_text):
    messages = _collect({"type": "analyze", "content": complex_pdb_text,
                         "params": {"hydrophobic_max_dist": 2.0}})
    data = messages[-1]["data"]
    assert data["params"]["hydrophobic_max_dist"] == 2.0
    assert data["interactions"][0]["hydrophobic"] == []


def test_analysis_failure_posts_single_error(protein_only_text):
    messages = _collect({"type": "analyze", "content": protein_only_text})
    assert messages[-1] == {"type": "error", "error": "No ligands found in structure", "stack": None}
    assert [m["type"] for m in messages].count("error") == 1
    assert messages[-2]["data"]["status"] == "error"


def test_unknown_parameter_rejected(complex_pdb_text):
    messages = _collect({"type": "analyze", "content": complex_pdb_text, "params": {"bogus": 1}})
    assert len(messages) == 1
    assert messages[0]["type"] == "error"
    assert "bogus" in messages[0]["error"]


def test_bad_message_shapes():
    assert _collect({"type": "ping"})[0]["type"] == "error"
    missing = _collect({"type": "analyze"})
    assert len(missing) == 1 and missing[0]["type"] == "error"

import json

import pytest

from reportseal import ReportRun, sign_report_run
from reportseal import cli

from signature_vectors import (
    ATTESTATION,
    BASE_INPUTS,
    DATA_HASH,
    REPORT_RUN_ID,
    SIGNATURE_SVG,
    V1_WITH_ATTESTATION,
    V2_WITH_ATTESTATION,
)


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


@pytest.fixture
def write_json(tmp_path):
    def write(name, data):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return write


@pytest.fixture
def signatures():
    run = ReportRun(id=REPORT_RUN_ID, data_hash=DATA_HASH, status="ready_for_signatures")
    out = []
    for role, name in [("prepared_by", "Alice Smith"), ("reviewed_by", "Bob Jones"), ("approved_by", "Carol White")]:
        out.append(sign_report_run(
            run,
            signer_name=name,
            signer_title="Safety Officer",
            signature_role=role,
            signature_svg=SIGNATURE_SVG,
            attestation_text=ATTESTATION,
            attestation_accepted=True,
            signature_id="sig-" + role,
        ).to_dict())
    return out


def test_hash(write_json, capsys):
    path = write_json("inputs.json", BASE_INPUTS)
    assert cli.main(["hash", "-f", path]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"signature_hash": V2_WITH_ATTESTATION, "hash_version": "v2"}


def test_hash_v1(write_json, capsys):
    path = write_json("inputs.json", BASE_INPUTS)
    assert cli.main(["hash", "-f", path, "--hash-version", "v1"]) == 0
    assert json.loads(capsys.readouterr().out)["signature_hash"] == V1_WITH_ATTESTATION


def test_hash_invalid_input(write_json, capsys):
    path = write_json("inputs.json", {**BASE_INPUTS, "signer_name": None})
    assert cli.main(["hash", "-f", path]) == 2
    assert "signer_name" in capsys.readouterr().err


def test_hash_rejects_array(write_json):
    path = write_json("inputs.json", [BASE_INPUTS])
    assert cli.main(["hash", "-f", path]) == 2


def test_verify_valid(write_json, signatures, capsys):
    path = write_json("sig.json", signatures[0])
    assert cli.main(["verify", "-f", path]) == 0
    assert "✓ sig-prepared_by: valid" in capsys.readouterr().out


def test_verify_list_with_tampered(write_json, signatures, capsys):
    signatures[1]["signer_title"] = "CEO"
    path = write_json("sigs.json", signatures)
    assert cli.main(["verify", "-f", path, "-v"]) == 1
    out = capsys.readouterr().out
    assert "✓ sig-prepared_by: valid" in out
    assert "✗ sig-reviewed_by: tampered" in out
    assert '"computed"' in out


def test_verify_run(write_json, signatures, capsys):
    run = write_json("run.json", {"id": REPORT_RUN_ID, "data_hash": DATA_HASH, "status": "final"})
    sigs = write_json("sigs.json", signatures)
    assert cli.main(["verify-run", "-r", run, "-s", sigs]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["signatures"]["is_complete"] is True


def test_verify_run_replayed_payload(write_json, signatures, capsys):
    run = write_json("run.json", {"id": REPORT_RUN_ID, "data_hash": "f" * 64, "status": "final"})
    sigs = write_json("sigs.json", signatures)
    assert cli.main(["verify-run", "-r", run, "-s", sigs]) == 1
    report = json.loads(capsys.readouterr().out)
    assert report["signatures"]["all_valid"] is False


def test_verify_run_requires_array(write_json, signatures):
    run = write_json("run.json", {"id": REPORT_RUN_ID, "data_hash": DATA_HASH, "status": "final"})
    sigs = write_json("sigs.json", signatures[0])
    assert cli.main(["verify-run", "-r", run, "-s", sigs]) == 2


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 2
    assert "verify-run" in capsys.readouterr().out


def test_verify_legacy_rows(write_json, capsys):
    row = {**BASE_INPUTS, "id": "sig-old", "signature_hash": V1_WITH_ATTESTATION}
    path = write_json("old.json", [row])
    assert cli.main(["verify", "-f", path]) == 1
    assert "✗ sig-old: tampered" in capsys.readouterr().out
    assert cli.main(["verify", "-f", path, "--legacy"]) == 0
    assert "✓ sig-old: valid" in capsys.readouterr().out


def test_log_file_passed_to_logging(monkeypatch, write_json, tmp_path):
    calls = []
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: calls.append(kwargs))
    path = write_json("inputs.json", BASE_INPUTS)
    log_path = str(tmp_path / "reportseal.log")
    assert cli.main(["--log-file", log_path, "--plain-logs", "hash", "-f", path]) == 0
    assert calls[0]["log_file"] == log_path
    assert calls[0]["json_format"] is False

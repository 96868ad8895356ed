# tests/test_cli.py
import json
import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from starchain.cli.main import app
from starchain.core.types import ClaimRecord

runner = CliRunner()


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    return tmp_path / "test-cli.db"


@pytest.fixture
def wallet_keys() -> dict:
    result = runner.invoke(app, ["keygen"])
    assert result.exit_code == 0
    return dict(line.split(": ", 1) for line in result.stdout.strip().splitlines())


def register(db: Path, keys: dict, item: str):
    token = runner.invoke(app, ["challenge", "--", keys["address"]]).stdout.strip()
    signature = runner.invoke(app, ["sign", "--key", keys["private"], "--", token]).stdout.strip()
    return runner.invoke(app, ["submit", "--db", str(db), "--", keys["address"], token, signature, item])


@pytest.fixture
def populated_db(temp_db: Path, wallet_keys: dict) -> Path:
    assert register(temp_db, wallet_keys, "Polaris").exit_code == 0
    assert register(temp_db, wallet_keys, '{"name": "Vega", "ra": "18h 36m"}').exit_code == 0
    return temp_db


def test_height_no_db(temp_db: Path):
    result = runner.invoke(app, ["height", "--db", str(temp_db)])
    assert result.exit_code == 1
    assert "not found" in result.stdout.lower()
    assert "to get started" in result.stdout.lower()


def test_challenge_format():
    result = runner.invoke(app, ["challenge", "W1"])
    assert result.exit_code == 0
    address, issued_at, marker = result.stdout.strip().split(":")
    assert address == "W1"
    assert issued_at.isdigit()
    assert marker == "startRegistry"


def test_submit_creates_ledger(populated_db: Path):
    result = runner.invoke(app, ["height", "--db", str(populated_db)])
    assert result.exit_code == 0
    assert "Chain height: 2" in result.stdout


def test_submit_bad_signature(temp_db: Path, wallet_keys: dict):
    token = runner.invoke(app, ["challenge", "--", wallet_keys["address"]]).stdout.strip()
    result = runner.invoke(app, ["submit", "--db", str(temp_db), "--", wallet_keys["address"], token, "AAAA", "Polaris"])
    assert result.exit_code == 1
    assert "Invalid signature" in result.stdout


def test_submit_expired(temp_db: Path, wallet_keys: dict):
    token = f"{wallet_keys['address']}:1000:startRegistry"
    signature = runner.invoke(app, ["sign", "--key", wallet_keys["private"], "--", token]).stdout.strip()
    result = runner.invoke(app, ["submit", "--db", str(temp_db), "--", wallet_keys["address"], token, signature, "Polaris"])
    assert result.exit_code == 1
    assert "expired" in result.stdout.lower()


def test_items_lists_in_order(populated_db: Path, wallet_keys: dict):
    result = runner.invoke(app, ["items", "--db", str(populated_db), "--", wallet_keys["address"]])
    assert result.exit_code == 0
    assert result.stdout.index("Polaris") < result.stdout.index("Vega")


def test_items_unknown_owner(populated_db: Path):
    result = runner.invoke(app, ["items", "nobody", "--db", str(populated_db)])
    assert result.exit_code == 0
    assert "No items" in result.stdout


def test_block_by_height(populated_db: Path):
    result = runner.invoke(app, ["block", "--height", "1", "--db", str(populated_db)])
    assert result.exit_code == 0
    assert "Polaris" in result.stdout


def test_block_requires_one_selector(populated_db: Path):
    result = runner.invoke(app, ["block", "--db", str(populated_db)])
    assert result.exit_code == 2


def test_block_not_found(populated_db: Path):
    result = runner.invoke(app, ["block", "--hash", "ff" * 32, "--db", str(populated_db)])
    assert result.exit_code == 1
    assert "not found" in result.stdout.lower()


def test_validate_clean_chain(populated_db: Path):
    result = runner.invoke(app, ["validate", "--db", str(populated_db)])
    assert result.exit_code == 0
    assert "valid" in result.stdout.lower()


def test_validate_detects_tampering(populated_db: Path):
    conn = sqlite3.connect(populated_db)
    conn.execute(
        "UPDATE blocks SET content = ? WHERE sequence_position = 1",
        (ClaimRecord(owner="thief", item="Polaris").encode(),),
    )
    conn.commit()
    conn.close()

    result = runner.invoke(app, ["validate", "--db", str(populated_db)])
    assert result.exit_code == 1
    assert "failed" in result.stdout.lower()
    assert "digest" in result.stdout


def test_export_creates_jsonl(populated_db: Path, tmp_path: Path):
    output_file = tmp_path / "export-test.jsonl"
    result = runner.invoke(app, ["export", "--db", str(populated_db), "--output", str(output_file)])

    assert result.exit_code == 0
    assert "Exported 3 blocks" in result.stdout

    with open(output_file, "r", encoding="utf-8") as f:
        lines = [json.loads(line) for line in f]
    assert [b["sequence_position"] for b in lines] == [0, 1, 2]
    assert lines[0]["previous_digest"] is None
    assert lines[2]["previous_digest"] == lines[1]["digest"]


def test_sign_rejects_bad_key():
    result = runner.invoke(app, ["sign", "--key", "not-a-key", "hello"])
    assert result.exit_code == 1
    assert "Invalid private key" in result.stdout

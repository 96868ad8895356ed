# tests/test_core.py
import pytest

from starchain.core.types import Block, ClaimRecord, RegistrationError, RegistrationResult, genesis_content
from starchain.core.encoding import b64url_encode, b64url_decode, encode_text
from starchain.core.canon import canonical_json
from starchain.crypto.hashing import block_hash, payload_hash


@pytest.fixture
def finalized_block():
    content = ClaimRecord(owner="W1", item={"name": "Polaris", "ra": "02h 31m 49s"}).encode()
    return Block.create(content).finalize(1, 1100, "ab" * 32)


def test_create_leaves_linkage_unset():
    block = Block.create("payload")
    assert block.content == "payload"
    assert block.sequence_position is None
    assert block.created_at is None
    assert block.previous_digest is None
    assert block.digest is None
    assert not block.is_finalized


def test_finalize_sets_digest(finalized_block):
    assert finalized_block.sequence_position == 1
    assert finalized_block.created_at == 1100
    assert finalized_block.previous_digest == "ab" * 32
    assert len(finalized_block.digest) == 64
    assert finalized_block.digest == block_hash(finalized_block)


def test_finalize_only_once(finalized_block):
    with pytest.raises(ValueError, match="already finalized"):
        finalized_block.finalize(2, 1200, "cd" * 32)
    assert finalized_block.sequence_position == 1


def test_validate_self(finalized_block):
    assert finalized_block.validate_self()
    finalized_block.created_at += 1
    assert not finalized_block.validate_self()


def test_unfinalized_block_is_not_valid():
    assert not Block.create("payload").validate_self()


@pytest.mark.parametrize("field,value", [
    ("content", encode_text('{"item":"Vega","owner":"W1"}')),
    ("sequence_position", 7),
    ("created_at", 0),
    ("previous_digest", "00" * 32),
])
def test_any_field_change_breaks_digest(finalized_block, field, value):
    setattr(finalized_block, field, value)
    assert not finalized_block.validate_self()


def test_digest_ignores_field_order():
    a = payload_hash({"content": "x", "sequence_position": 1, "created_at": 5, "previous_digest": None})
    b = payload_hash({"previous_digest": None, "created_at": 5, "sequence_position": 1, "content": "x"})
    assert a == b


def test_decoded_content_roundtrip(finalized_block):
    record = finalized_block.decoded_content()
    assert record == ClaimRecord(owner="W1", item={"name": "Polaris", "ra": "02h 31m 49s"})


def test_genesis_has_no_claim():
    genesis = Block.create(genesis_content()).finalize(0, 1000, None)
    assert genesis.decoded_content() is None


def test_non_claim_content_decodes_to_none():
    block = Block.create("not base64 json!").finalize(3, 1000, "ab" * 32)
    assert block.decoded_content() is None


def test_claim_item_must_be_json():
    with pytest.raises(ValueError, match="JSON"):
        ClaimRecord(owner="W1", item=object()).encode()


def test_to_dict(finalized_block):
    d = finalized_block.to_dict()
    assert set(d) == {"content", "sequence_position", "created_at", "previous_digest", "digest"}
    assert d["digest"] == finalized_block.digest


def test_registration_result():
    ok = RegistrationResult.ok(Block.create("x").finalize(1, 1, "a"))
    assert ok and ok.is_valid
    assert "added" in ok.message

    rejected = RegistrationResult.rejected(RegistrationError.EXPIRED)
    assert not rejected
    assert rejected.block is None
    assert rejected.message == "Time has expired!"


def test_base64url_roundtrip():
    original = b'{"hello":"world"}'
    encoded = b64url_encode(original)
    assert b64url_decode(encoded) == original
    assert "=" not in encoded


def test_canonical_json_sorting():
    canon = canonical_json({"z": 1, "a": "hello", "nested": {"b": 2, "a": 1}}).decode("utf-8")
    assert canon == '{"a":"hello","nested":{"a":1,"b":2},"z":1}'

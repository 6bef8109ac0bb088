import pytest

from joke_common.errors import BrokerUnavailable, ValidationError
from joke_common.type_cache import TypeCache
from submit_service.core.gateway import SubmissionGateway

QUEUE = "SUBMITTED_QUESTIONS"


@pytest.fixture
def gateway(fake_broker, tmp_path):
    return SubmissionGateway(fake_broker, TypeCache(tmp_path / "types.json"), QUEUE)


@pytest.mark.asyncio
async def test_submit_enqueues_one_message_with_lowercased_type(gateway, fake_broker):
    queued = await gateway.submit("Why?", "Because.", "NewCat")

    pending = fake_broker.pending(QUEUE)
    assert len(pending) == 1
    assert pending[0]["setup"] == "Why?"
    assert pending[0]["punchline"] == "Because."
    assert pending[0]["type"] == "newcat"
    assert pending[0]["timestamp"] == queued.timestamp


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fields, missing",
    [
        (("Why?", None, "dad"), ["punchline"]),
        ((None, None, None), ["setup", "punchline", "type"]),
        (("Why?", "Because.", ""), ["type"]),
    ],
)
async def test_incomplete_submission_enqueues_nothing(gateway, fake_broker, fields, missing):
    with pytest.raises(ValidationError) as exc_info:
        await gateway.submit(*fields)

    assert exc_info.value.missing_fields == missing
    assert fake_broker.pending(QUEUE) == []


@pytest.mark.asyncio
async def test_submit_without_channel_raises_broker_unavailable(gateway, fake_broker):
    fake_broker.connected = False

    with pytest.raises(BrokerUnavailable):
        await gateway.submit("Why?", "Because.", "dad")


def test_list_cached_types_reads_cache_only(gateway):
    gateway.type_cache.replace(["general", "knock"])

    assert gateway.list_cached_types() == ["general", "knock"]

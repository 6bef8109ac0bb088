"""Submit, moderate, store and broadcast across all services over the in-memory broker."""

import pytest
import pytest_asyncio

from joke_common.messaging.type_updates import subscribe_type_updates
from joke_common.type_cache import TypeCache
from joke_service.core.etl_worker import ETLWorker
from moderate_service.core.moderator import DecisionStatus, ModerationWorker
from submit_service.core.gateway import SubmissionGateway

SUBMITTED = "SUBMITTED_QUESTIONS"
MODERATED = "MODERATED_QUESTIONS"
EXCHANGE = "type_update"


@pytest_asyncio.fixture
async def pipeline(tmp_path, fake_broker, sqlite_store):
    submit_cache = TypeCache(tmp_path / "submit" / "types.json")
    moderate_cache = TypeCache(tmp_path / "moderate" / "types.json")
    await subscribe_type_updates(fake_broker, "sub_type_update", EXCHANGE, submit_cache.apply_event)
    await subscribe_type_updates(fake_broker, "mod_type_update", EXCHANGE, moderate_cache.apply_event)

    etl = ETLWorker(sqlite_store, fake_broker, EXCHANGE)
    await fake_broker.consume(MODERATED, etl.handle_message)

    return {
        "gateway": SubmissionGateway(fake_broker, submit_cache, SUBMITTED),
        "moderator": ModerationWorker(fake_broker, moderate_cache, SUBMITTED, MODERATED),
        "submit_cache": submit_cache,
        "moderate_cache": moderate_cache,
        "submit_cache_path": tmp_path / "submit" / "types.json",
    }


@pytest.mark.asyncio
async def test_new_type_reaches_every_cache(pipeline, fake_broker, sqlite_store):
    for type_name in ("general", "programming", "dad"):
        await sqlite_store.insert_type(type_name)

    await pipeline["gateway"].submit("Q", "A", "NewCat")
    joke = await pipeline["moderator"].fetch_next()
    status = await pipeline["moderator"].decide(True, joke.setup, joke.punchline, joke.type)
    await fake_broker.deliver(MODERATED)
    await fake_broker.deliver("sub_type_update")
    await fake_broker.deliver("mod_type_update")

    assert status is DecisionStatus.ACCEPTED
    assert "newcat" in pipeline["submit_cache"].snapshot()
    assert "newcat" in pipeline["moderate_cache"].snapshot()
    assert TypeCache(pipeline["submit_cache_path"]).snapshot() == ["dad", "general", "newcat", "programming"]
    assert [j.model_dump() for j in await sqlite_store.sample("newcat", 3)] == [
        {"type": "newcat", "setup": "Q", "punchline": "A"}
    ]


@pytest.mark.asyncio
async def test_rejected_joke_never_reaches_store(pipeline, fake_broker, sqlite_store):
    await pipeline["gateway"].submit("Q", "A", "dad")
    joke = await pipeline["moderator"].fetch_next()

    status = await pipeline["moderator"].decide(False, joke.setup, joke.punchline, joke.type)
    await fake_broker.deliver(MODERATED)

    assert status is DecisionStatus.REJECTED
    assert fake_broker.pending(SUBMITTED) == []
    assert fake_broker.broadcasts == []
    assert await sqlite_store.count_jokes() == 0

import pytest

from watchorder.client.cache import ListCache
from watchorder.client.mutations import ListMutations
from watchorder.core.errors import (
    ErrorKind,
    MalformedInputError,
    NotFoundError,
    Result,
    TransportError,
)
from watchorder.models.media import (
    ListMeta,
    ListPayload,
    MediaMetadata,
    MediaNode,
    MediaType,
)


def marvel(owner="alice"):
    return ListPayload(
        list=ListMeta(id="1", name="Marvel", owner=owner),
        media=[
            MediaNode(id="10", media_id="1726", media_type=MediaType.MOVIE, title="Iron Man"),
            MediaNode(id="11", media_id="84958", media_type=MediaType.TV, title="Loki"),
        ],
    )


@pytest.fixture
def transport(fake_transport):
    return fake_transport({"1": marvel()})


@pytest.fixture
def mutations(transport):
    return ListMutations(transport, ListCache(), user="alice")


OPERATIONS = [
    ("add_to_list", lambda m: m.add_to_list(
        "1771", "1", MediaMetadata(media_type=MediaType.MOVIE, title="Captain America")
    )),
    ("remove_from_list", lambda m: m.remove_from_list("10", "1")),
    ("toggle_watched", lambda m: m.toggle_watched("10", True, "1")),
    ("add_seasons", lambda m: m.add_seasons("11", "84958", "1")),
    ("add_episodes", lambda m: m.add_episodes("12", 1, "1", "11")),
    ("hide_children", lambda m: m.hide_children("11", "1")),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("name, operation", OPERATIONS)
async def test_operation_refetches_owning_list(mutations, transport, name, operation):
    await mutations.fetch_list("1")
    transport.calls.clear()

    result = await operation(mutations)

    assert result.ok
    assert transport.calls[0][0] == name
    assert transport.calls[0][1] == "1"
    assert transport.calls[-1] == ("get_list", "1")
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_cache_reflects_refetch_not_local_patch(mutations, transport):
    await mutations.fetch_list("1")
    metadata = MediaMetadata(media_type=MediaType.MOVIE, title="Thor")

    result = await mutations.add_to_list("10195", "1", metadata)

    assert [n.id for n in result.value.nodes] == ["10", "11", "99"]
    assert mutations.cache.nodes("1") == transport.lists["1"].media


@pytest.mark.asyncio
@pytest.mark.parametrize("name, operation", OPERATIONS)
async def test_non_owner_is_refused_before_request(transport, name, operation):
    mutations = ListMutations(transport, ListCache(), user="mallory")
    await mutations.fetch_list("1")
    transport.calls.clear()

    result = await operation(mutations)

    assert not result.ok
    assert result.error.kind == ErrorKind.UNAUTHORIZED
    assert transport.calls == []


@pytest.mark.asyncio
async def test_anonymous_user_is_refused(transport):
    mutations = ListMutations(transport, ListCache())
    result = await mutations.toggle_watched("10", True, "1")
    assert result.error.kind == ErrorKind.UNAUTHORIZED
    assert transport.calls == []


@pytest.mark.asyncio
async def test_owner_check_fetches_uncached_list(mutations, transport):
    result = await mutations.hide_children("11", "1")
    assert result.ok
    assert transport.names() == ["get_list", "hide_children", "get_list"]


@pytest.mark.asyncio
async def test_missing_list_is_not_found(mutations, transport):
    result = await mutations.remove_from_list("10", "404")
    assert isinstance(result.error, NotFoundError)
    assert transport.names() == ["get_list"]


@pytest.mark.asyncio
async def test_failed_request_leaves_cache_unchanged(mutations, transport):
    await mutations.fetch_list("1")
    before = mutations.cache.nodes("1")
    transport.fail_with = TransportError("connection reset")
    transport.calls.clear()

    result = await mutations.toggle_watched("10", True, "1")

    assert isinstance(result.error, TransportError)
    assert mutations.cache.nodes("1") == before
    assert transport.names() == ["toggle_watched"]


@pytest.mark.asyncio
async def test_failed_fetch_leaves_cache_unchanged(mutations, transport):
    await mutations.fetch_list("1")
    before = mutations.cache.nodes("1")
    transport.fail_with = TransportError("connection reset")

    result = await mutations.fetch_list("1")

    assert result.error.kind == ErrorKind.TRANSPORT
    assert mutations.cache.nodes("1") == before


@pytest.mark.asyncio
async def test_list_deleted_on_server_is_evicted(mutations, transport):
    await mutations.fetch_list("1")
    del transport.lists["1"]

    result = await mutations.fetch_list("1")

    assert result.error.kind == ErrorKind.NOT_FOUND
    assert "1" not in mutations.cache
    assert not mutations.is_owner("1")


@pytest.mark.asyncio
async def test_list_deleted_on_server_is_kept_for_closed_caller(mutations, transport):
    await mutations.fetch_list("1")
    del transport.lists["1"]

    result = await mutations.fetch_list("1", still_wanted=lambda: False)

    assert result.error.kind == ErrorKind.NOT_FOUND
    assert "1" in mutations.cache


@pytest.mark.asyncio
async def test_closed_caller_does_not_write_cache(mutations, transport):
    result = await mutations.fetch_list("1", still_wanted=lambda: False)
    assert result.ok
    assert result.value is None
    assert "1" not in mutations.cache


@pytest.mark.asyncio
async def test_closed_caller_keeps_previous_state(mutations, transport):
    await mutations.fetch_list("1")
    before = mutations.cache.nodes("1")
    transport.lists["1"] = ListPayload(list=marvel().list, media=[])

    await mutations.remove_from_list("10", "1", still_wanted=lambda: False)

    assert mutations.cache.nodes("1") == before


@pytest.mark.asyncio
async def test_create_list_rejects_slash_without_request(mutations, transport):
    result = await mutations.create_list("Marvel/DC")
    assert isinstance(result.error, MalformedInputError)
    assert result.error.message == "Invalid character: /"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_create_list_rejects_blank_name(mutations, transport):
    result = await mutations.create_list("   ")
    assert result.error.kind == ErrorKind.MALFORMED_INPUT
    assert transport.calls == []


@pytest.mark.asyncio
async def test_create_list_requires_user(transport):
    mutations = ListMutations(transport, ListCache())
    result = await mutations.create_list("DC")
    assert result.error.kind == ErrorKind.UNAUTHORIZED
    assert transport.calls == []


@pytest.mark.asyncio
async def test_create_list_caches_meta(mutations, transport):
    result = await mutations.create_list("  DC  ")
    assert result.ok
    assert result.value.name == "DC"
    assert transport.calls == [("create_list", "DC")]
    assert mutations.cache.read("9").nodes == []
    assert mutations.is_owner("9")


@pytest.mark.asyncio
async def test_edit_list_rejects_slash(mutations, transport):
    result = await mutations.edit_list("1", "a/b")
    assert result.error.kind == ErrorKind.MALFORMED_INPUT
    assert transport.calls == []


@pytest.mark.asyncio
async def test_edit_list_refetches(mutations, transport):
    result = await mutations.edit_list("1", "MCU")
    assert result.ok
    assert result.value.meta.name == "MCU"
    assert transport.names() == ["get_list", "edit_list", "get_list"]


@pytest.mark.asyncio
async def test_delete_list_evicts(mutations, transport):
    await mutations.fetch_list("1")
    result = await mutations.delete_list("1")
    assert result.ok
    assert "1" not in mutations.cache
    assert transport.names() == ["get_list", "delete_list"]


@pytest.mark.asyncio
async def test_delete_list_by_visitor_is_refused(transport):
    mutations = ListMutations(transport, ListCache(), user="mallory")
    result = await mutations.delete_list("1")
    assert result.error.kind == ErrorKind.UNAUTHORIZED
    assert "delete_list" not in transport.names()


@pytest.mark.asyncio
async def test_reset_session_clears_user_and_cache(mutations, transport):
    await mutations.fetch_list("1")
    assert transport.user == "alice"

    mutations.reset_session()

    assert mutations.user is None
    assert transport.user is None
    assert len(mutations.cache) == 0
    assert not mutations.is_owner("1")


def test_unwrap_raises_held_error():
    error = NotFoundError("gone")
    with pytest.raises(NotFoundError):
        Result.failure(error).unwrap()
    assert Result.success(3).unwrap() == 3


@pytest.mark.asyncio
async def test_partial_fetch_merges_into_cached_nodes(mutations, transport):
    await mutations.fetch_list("1")
    transport.lists["1"] = ListPayload(
        list=marvel().list,
        media=[
            MediaNode(
                id="11",
                media_id="84958",
                media_type=MediaType.TV,
                title="Loki",
                show_children=True,
            ),
            MediaNode(
                id="12",
                media_id="114355",
                media_type=MediaType.SEASON,
                number=1,
                parent_show_id="11",
            ),
        ],
    )

    result = await mutations.fetch_list("1", partial=True)

    assert [n.id for n in result.value.nodes] == ["10", "11", "12"]
    assert result.value.nodes[1].show_children


@pytest.mark.asyncio
async def test_full_fetch_replaces_cached_nodes(mutations, transport):
    await mutations.fetch_list("1")
    transport.lists["1"] = ListPayload(list=marvel().list, media=marvel().media[1:])

    result = await mutations.fetch_list("1")

    assert [n.id for n in result.value.nodes] == ["11"]

"""Unit tests for PermissionCatalog."""

from uuid import uuid4

import pytest

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.domain.exceptions import (
    Conflict,
    DuplicateCode,
    Forbidden,
    ImmutableFieldError,
    NotFound,
    PermissionInUse,
    ValidationError,
)
from accessgate.domain.value_objects import CLEAR, SetTo

from tests.conftest import make_grant, make_permission


async def _seed(catalog, *codes: str, is_system: bool = False):
    created = []
    for code in codes:
        module, resource, action = code.split(":")
        created.append(
            await catalog.create(code, code.title(), module, resource, action, is_system=is_system)
        )
    return created


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_and_find(self, catalog) -> None:
        perm = await catalog.create(
            "stock:batch:delete",
            "Delete batch",
            "stock",
            "batch",
            "delete",
            metadata={"ui": "danger"},
            description="Remove a batch",
        )
        assert perm.code == "stock:batch:delete"
        assert perm.metadata == {"ui": "danger"}
        assert perm.is_system is False
        assert await catalog.find_by_id(perm.id) == perm
        assert await catalog.find_by_code("stock:batch:delete") == perm
        assert await catalog.exists("stock:batch:delete")

    @pytest.mark.asyncio
    async def test_metadata_is_read_only(self, catalog) -> None:
        source = {"ui": "danger"}
        perm = await catalog.create(
            "stock:batch:delete", "Delete batch", "stock", "batch", "delete", metadata=source
        )
        source["ui"] = "safe"
        assert perm.metadata == {"ui": "danger"}
        with pytest.raises(TypeError):
            perm.metadata["ui"] = "safe"
        stored = await catalog.find_by_id(perm.id)
        assert stored.metadata["ui"] == "danger"

    @pytest.mark.asyncio
    async def test_duplicate_code_rejected(self, catalog) -> None:
        await _seed(catalog, "stock:batch:delete")
        with pytest.raises(DuplicateCode):
            await catalog.create("stock:batch:delete", "Again", "stock", "batch", "delete")
        assert await catalog.count() == 1

    @pytest.mark.asyncio
    async def test_code_must_match_segments(self, catalog) -> None:
        with pytest.raises(ValidationError):
            await catalog.create("stock:batch:delete", "X", "stock", "batch", "read")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["stock:batch", "stock:*:delete", "stock:ba tch:delete"])
    async def test_malformed_code_rejected(self, catalog, code) -> None:
        with pytest.raises(ValidationError):
            await catalog.create(code, "X", "stock", "batch", "delete")

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, catalog) -> None:
        with pytest.raises(ValidationError):
            await catalog.create("stock:batch:delete", "  ", "stock", "batch", "delete")


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_descriptive_fields(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        updated = await catalog.update(
            perm.id, name=SetTo("Remove batch"), description=SetTo("Gone"), metadata=SetTo({"a": 1})
        )
        assert updated.name == "Remove batch"
        assert updated.description == "Gone"
        assert updated.metadata == {"a": 1}
        assert updated.code == perm.code
        assert await catalog.find_by_id(perm.id) == updated

    @pytest.mark.asyncio
    async def test_clear_description_and_metadata(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        await catalog.update(perm.id, description=SetTo("x"), metadata=SetTo({"a": 1}))
        cleared = await catalog.update(perm.id, description=CLEAR, metadata=CLEAR)
        assert cleared.description is None
        assert cleared.metadata == {}

    @pytest.mark.asyncio
    async def test_unchanged_fields_are_kept(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        assert await catalog.update(perm.id) == perm

    @pytest.mark.asyncio
    async def test_name_cannot_be_cleared(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        with pytest.raises(ValidationError):
            await catalog.update(perm.id, name=CLEAR)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["code", "module", "resource", "action", "is_system"])
    async def test_immutable_fields_rejected(self, catalog, field) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        with pytest.raises(ImmutableFieldError) as exc_info:
            await catalog.update(perm.id, **{field: SetTo("x")})
        assert exc_info.value.fields == [field]
        assert await catalog.find_by_id(perm.id) == perm

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        with pytest.raises(ValidationError):
            await catalog.update(perm.id, colour=SetTo("red"))

    @pytest.mark.asyncio
    async def test_missing_permission(self, catalog) -> None:
        with pytest.raises(NotFound):
            await catalog.update(uuid4(), name=SetTo("x"))


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, catalog) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        await catalog.delete(perm.id)
        assert await catalog.find_by_id(perm.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, catalog) -> None:
        with pytest.raises(NotFound):
            await catalog.delete(uuid4())

    @pytest.mark.asyncio
    async def test_system_permission_cannot_be_deleted(self, catalog) -> None:
        (perm,) = await _seed(catalog, "rbac:permission:manage", is_system=True)
        with pytest.raises(Forbidden):
            await catalog.delete(perm.id)
        assert await catalog.find_by_id(perm.id) is not None

    @pytest.mark.asyncio
    async def test_referenced_permission_cannot_be_deleted(self, catalog, uow) -> None:
        (perm,) = await _seed(catalog, "stock:batch:delete")
        uow.direct_grants.add(make_grant("u1", perm))
        with pytest.raises(PermissionInUse) as exc_info:
            await catalog.delete(perm.id)
        assert isinstance(exc_info.value, Conflict)
        assert await catalog.find_by_id(perm.id) is not None


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_all_ordered(self, catalog) -> None:
        await _seed(catalog, "stock:item:read", "sales:order:create", "stock:batch:delete")
        codes = [p.code for p in await catalog.list_all()]
        assert codes == ["sales:order:create", "stock:batch:delete", "stock:item:read"]

    @pytest.mark.asyncio
    async def test_filters(self, catalog) -> None:
        await _seed(catalog, "stock:item:read", "stock:item:delete", "sales:order:read")
        await _seed(catalog, "rbac:permission:read", is_system=True)
        assert [p.code for p in await catalog.list_by_module("stock")] == [
            "stock:item:delete",
            "stock:item:read",
        ]
        assert [p.code for p in await catalog.list_by_resource("order")] == ["sales:order:read"]
        assert [p.code for p in await catalog.list_system()] == ["rbac:permission:read"]
        only_reads = PermissionFilter(action="read", is_system=False)
        assert await catalog.count(only_reads) == 2

    @pytest.mark.asyncio
    async def test_pagination(self, catalog) -> None:
        await _seed(catalog, "a:x:read", "b:x:read", "c:x:read")
        page_two = await catalog.list_all(page=2, limit=2)
        assert [p.code for p in page_two] == ["c:x:read"]
        with pytest.raises(ValidationError):
            await catalog.list_all(page=0, limit=2)
        with pytest.raises(ValidationError):
            await catalog.list_all(page=1, limit=0)

    @pytest.mark.asyncio
    async def test_find_many(self, catalog, uow) -> None:
        perms = await _seed(catalog, "a:x:read", "b:x:read")
        assert await catalog.find_many_by_ids([]) == []
        assert await catalog.find_many_by_codes([]) == []
        found = await catalog.find_many_by_ids([perms[1].id, uuid4()])
        assert found == [perms[1]]
        assert [p.code for p in await catalog.find_many_by_codes(["a:x:read", "zz:x:read"])] == [
            "a:x:read"
        ]

    @pytest.mark.asyncio
    async def test_exists_false_for_unknown(self, catalog) -> None:
        assert not await catalog.exists("nope:x:read")

    @pytest.mark.asyncio
    async def test_seeded_permission_visible(self, catalog, uow) -> None:
        perm = make_permission("stock:item:read")
        uow.permissions.add(perm)
        assert await catalog.find_by_code("stock:item:read") == perm

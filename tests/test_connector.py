# tests/test_connector.py
"""
Tests for the MotorConnector operations against an in-process MongoDB.
"""
import asyncio
from datetime import datetime
from decimal import Decimal

import pytest
from bson import Decimal128, ObjectId

from restmotor import (
    ConnectionNotReadyError,
    ConnectorRegistry,
    MotorConnector,
    RestError,
    RestRequest,
    SchemaConfigError,
    UnhandledStorageError,
    get_storage_handle,
)

from sample_models import Employee, Note, Person, Unconfigured


async def make_person(connector, fake, **values):
    person = await connector.create(Person, RestRequest())
    person.name = values.pop("name", fake.name())
    person.email = values.pop("email", fake.unique.email())
    for key, value in values.items():
        setattr(person, key, value)
    return await connector.save(person)


class TestCreateAndSave:

    @pytest.mark.asyncio
    async def test_create_returns_unsaved_instance_with_defaults(self, connector, database):
        person = await connector.create(Person, RestRequest())
        assert person.id is None
        assert person.active is True
        assert person.role == "user"
        assert person.tags == []
        assert await database["Person"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_save_persists_and_returns_same_instance(self, connector, database, fake):
        person = await connector.create(Person, RestRequest())
        person.name = fake.name()
        person.email = fake.unique.email()
        person.age = 30

        saved = await connector.save(person)

        assert saved is person
        assert isinstance(person.id, ObjectId)
        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["name"] == person.name
        assert raw["age"] == 30

    @pytest.mark.asyncio
    async def test_save_missing_required_field_is_validation_error(self, connector, database):
        person = await connector.create(Person, RestRequest())
        person.email = "nobody@example.com"

        with pytest.raises(RestError) as exc:
            await connector.save(person)

        assert exc.value.status_code == 400
        assert exc.value.detail == {"code": "VALIDATION"}
        assert await database["Person"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_empty_required_string_is_validation_error(self, connector):
        person = await connector.create(Person, RestRequest())
        person.name = ""
        with pytest.raises(RestError) as exc:
            await connector.save(person)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_enum_violation_is_validation_error(self, connector, fake):
        person = await connector.create(Person, RestRequest())
        person.name = fake.name()
        person.role = "root"
        with pytest.raises(RestError) as exc:
            await connector.save(person)
        assert exc.value.detail["code"] == "VALIDATION"

    @pytest.mark.asyncio
    async def test_custom_validator(self, connector, fake):
        person = await connector.create(Person, RestRequest())
        person.name = fake.name()
        person.age = -1
        with pytest.raises(RestError) as exc:
            await connector.save(person)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_embedded_and_subdocument_arrays(self, connector, database, fake):
        city = fake.city()
        person = await make_person(
            connector, fake,
            address={"city": city, "zip": "12345"},
            labels=[{"name": "vip", "color": "red"}],
        )

        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["address"] == {"city": city, "zip": "12345"}
        assert raw["labels"] == [{"name": "vip", "color": "red"}]

        found = await connector.find_one(Person, RestRequest(params={"id": str(person.id)}), True)
        assert found.address.city == city
        assert found.labels[0].color == "red"

    @pytest.mark.asyncio
    async def test_invalid_subdocument_enum(self, connector, fake):
        person = await connector.create(Person, RestRequest())
        person.name = fake.name()
        person.labels = [{"name": "vip", "color": "purple"}]
        with pytest.raises(RestError) as exc:
            await connector.save(person)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_reference_array_stores_ids(self, connector, database, fake):
        friend = await make_person(connector, fake)
        person = await make_person(connector, fake, friends=[str(friend.id)])

        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["friends"] == [friend.id]
        assert isinstance(raw["friends"][0], ObjectId)

    @pytest.mark.asyncio
    async def test_decimal_and_date_round_trip(self, connector, database, fake):
        person = await make_person(connector, fake, balance=Decimal("10.50"), born=datetime(1990, 5, 17))

        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["balance"] == Decimal128("10.50")

        found = await connector.find_one(Person, RestRequest(params={"id": str(person.id)}), False)
        assert found.balance == Decimal("10.50")
        assert found.born == datetime(1990, 5, 17)

    @pytest.mark.asyncio
    async def test_save_existing_document_updates_it(self, connector, database, fake):
        person = await make_person(connector, fake, age=20)
        found = await connector.find_one(Person, RestRequest(params={"id": str(person.id)}), True)
        found.age = 21

        await connector.save(found)

        assert await database["Person"].count_documents({}) == 1
        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["age"] == 21

    @pytest.mark.asyncio
    async def test_saving_projected_read_keeps_unloaded_fields(self, connector, database, fake):
        email = fake.unique.email()
        person = await make_person(connector, fake, email=email, age=33, tags=["a"])

        [partial] = await connector.find(Person, RestRequest(projection={"name": 1}))
        partial.name = "Anne"
        await connector.save(partial)

        raw = await database["Person"].find_one({"_id": person.id})
        assert raw["name"] == "Anne"
        assert raw["age"] == 33
        assert raw["email"] == email
        assert raw["tags"] == ["a"]
        assert partial.age is None

    @pytest.mark.asyncio
    async def test_setting_none_removes_field(self, connector, database, fake):
        person = await make_person(connector, fake, age=33)
        person.age = None
        await connector.save(person)

        raw = await database["Person"].find_one({"_id": person.id})
        assert "age" not in raw
        assert raw["name"] == person.name

    @pytest.mark.asyncio
    async def test_save_with_preset_id_stores_full_document(self, connector, database):
        note = await connector.create(Note, RestRequest())
        note.id = ObjectId()
        note.title = "pinned"
        await connector.save(note)

        raw = await database["notes"].find_one({"_id": note.id})
        assert raw["title"] == "pinned"

    @pytest.mark.asyncio
    async def test_inherited_model_uses_its_own_collection(self, connector, database, fake):
        employee = await connector.create(Employee, RestRequest())
        employee.name = fake.name()
        employee.company = fake.company()
        employee.age = 40
        await connector.save(employee)

        raw = await database["Employee"].find_one({})
        assert raw["company"] == employee.company
        assert raw["age"] == 40
        assert raw["active"] is True
        assert await database["Person"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_settings_collection_name(self, connector, database):
        note = await connector.create(Note, RestRequest())
        note.title = "hello"
        await connector.save(note)
        assert await database["notes"].count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_save_foreign_object_is_validation_error(self, connector):
        with pytest.raises(RestError) as exc:
            await connector.save(object())
        assert exc.value.status_code == 400


class TestFind:

    @pytest.mark.asyncio
    async def test_find_one_malformed_path_id_is_not_found(self, connector):
        request = RestRequest(params={"id": "not-an-id"})
        with pytest.raises(RestError) as exc:
            await connector.find_one(Person, request, True)
        assert exc.value.status_code == 404
        assert exc.value.detail == {"code": "NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_find_one_malformed_field_is_bad_format(self, connector):
        request = RestRequest(query={"owner": "not-an-id"})
        with pytest.raises(RestError) as exc:
            await connector.find_one(Note, request, True)
        assert exc.value.status_code == 404
        assert exc.value.detail == {"code": "BAD_FORMAT", "field": "owner"}

    @pytest.mark.asyncio
    async def test_find_one_missing_is_none(self, connector):
        request = RestRequest(params={"id": str(ObjectId())})
        assert await connector.find_one(Person, request, True) is None

    @pytest.mark.asyncio
    async def test_find_one_honors_filter_flag(self, connector, fake):
        person = await make_person(connector, fake, active=False)
        request = RestRequest(params={"id": str(person.id)}, query={"active": True})

        assert await connector.find_one(Person, request, True) is None
        found = await connector.find_one(Person, request, False)
        assert found.id == person.id

    @pytest.mark.asyncio
    async def test_find_empty_filter_returns_everything(self, connector, fake):
        for _ in range(3):
            await make_person(connector, fake)
        results = await connector.find(Person, RestRequest())
        assert len(results) == 3

    @pytest.mark.asyncio
    async def test_find_empty_collection(self, connector):
        assert await connector.find(Person, RestRequest(query={})) == []

    @pytest.mark.asyncio
    async def test_find_limit_bounds_results(self, connector, fake):
        for _ in range(5):
            await make_person(connector, fake)
        results = await connector.find(Person, RestRequest(options={"limit": 2}))
        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_find_sort_and_skip(self, connector, fake):
        for age in (30, 10, 20):
            await make_person(connector, fake, age=age)
        results = await connector.find(Person, RestRequest(options={"sort": {"age": -1}, "skip": 1}))
        assert [p.age for p in results] == [20, 10]

    @pytest.mark.asyncio
    async def test_find_filter_is_cast(self, connector, fake):
        await make_person(connector, fake, age=10)
        await make_person(connector, fake, age=50)
        results = await connector.find(Person, RestRequest(query={"age": {"$gt": "18"}}))
        assert [p.age for p in results] == [50]

    @pytest.mark.asyncio
    async def test_find_projection(self, connector, fake):
        person = await make_person(connector, fake, age=33)
        results = await connector.find(Person, RestRequest(projection={"name": 1}))
        assert len(results) == 1
        assert results[0].name == person.name
        assert results[0].id == person.id
        assert results[0].age is None

    @pytest.mark.asyncio
    async def test_find_bad_format_on_filter(self, connector):
        with pytest.raises(RestError) as exc:
            await connector.find(Person, RestRequest(query={"age": "old"}))
        assert exc.value.detail == {"code": "BAD_FORMAT", "field": "age"}


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_one_without_match_is_true(self, connector):
        request = RestRequest(params={"id": str(ObjectId())})
        assert await connector.delete_one(Person, request) is True

    @pytest.mark.asyncio
    async def test_delete_one_removes_document(self, connector, database, fake):
        keep = await make_person(connector, fake)
        drop = await make_person(connector, fake)

        assert await connector.delete_one(Person, RestRequest(params={"id": str(drop.id)})) is True

        remaining = [raw["_id"] async for raw in database["Person"].find({})]
        assert remaining == [keep.id]

    @pytest.mark.asyncio
    async def test_delete_one_malformed_id(self, connector):
        with pytest.raises(RestError) as exc:
            await connector.delete_one(Person, RestRequest(params={"id": "nope"}))
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_by_filter(self, connector, database, fake):
        await make_person(connector, fake, active=False)
        await make_person(connector, fake, active=False)
        await make_person(connector, fake, active=True)

        assert await connector.delete(Person, RestRequest(query={"active": "false"})) is True
        assert await database["Person"].count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_delete_without_filter_removes_all(self, connector, database, fake):
        await make_person(connector, fake)
        await make_person(connector, fake)
        assert await connector.delete(Person, RestRequest()) is True
        assert await database["Person"].count_documents({}) == 0


class TestUnrecognizedErrors:

    @pytest.mark.asyncio
    async def test_strict_mode_raises(self, connector, fake):
        email = fake.unique.email()
        await make_person(connector, fake, email=email)
        with pytest.raises(UnhandledStorageError):
            await make_person(connector, fake, email=email)

    @pytest.mark.asyncio
    async def test_lenient_mode_resolves_to_none(self, registry, database, fake):
        connector = MotorConnector(registry=registry, database=database, strict_errors=False)
        email = fake.unique.email()
        await make_person(connector, fake, email=email)

        assert await make_person(connector, fake, email=email) is None
        assert await database["Person"].count_documents({}) == 1


class TestHandleResolution:

    @pytest.mark.asyncio
    async def test_handle_built_once_per_model_and_database(self, registry, database):
        first = await registry.get_handle(Person, database)
        second = await registry.get_handle(Person, database)
        assert first is second
        assert first.initialized

    @pytest.mark.asyncio
    async def test_concurrent_first_use_shares_one_handle(self, registry, database):
        handles = await asyncio.gather(*(registry.get_handle(Person, database) for _ in range(5)))
        assert all(h is handles[0] for h in handles)

    @pytest.mark.asyncio
    async def test_separate_databases_get_separate_handles(self, registry, mongo_client):
        one = await registry.get_handle(Person, mongo_client["one"])
        two = await registry.get_handle(Person, mongo_client["two"])
        assert one is not two
        assert one.schema is two.schema

    @pytest.mark.asyncio
    async def test_per_request_connection_provider(self, registry, mongo_client, fake):
        tenants = {"a": mongo_client["tenant_a"], "b": mongo_client["tenant_b"]}

        async def get_connection(request):
            return tenants[request.params["tenant"]]

        connector = MotorConnector(registry=registry, get_connection=get_connection)
        note = await connector.create(Note, RestRequest(params={"tenant": "a"}))
        note.title = fake.sentence()
        await connector.save(note)

        assert await tenants["a"]["notes"].count_documents({}) == 1
        assert await connector.find(Note, RestRequest(params={"tenant": "b"})) == []

    @pytest.mark.asyncio
    async def test_provider_returning_fresh_database_objects_reuses_handle(self, registry, mongo_client):
        async def get_connection(request):
            return mongo_client["tenant"]

        connector = MotorConnector(registry=registry, get_connection=get_connection)
        for _ in range(5):
            await connector.find(Note, RestRequest())

        first = registry.cached_handle(Note, mongo_client["tenant"])
        assert first is not None
        assert first is await registry.get_handle(Note, mongo_client["tenant"])
        assert len(registry._handles) == 1

    @pytest.mark.asyncio
    async def test_default_connection(self, default_db):
        handle = await get_storage_handle(Note)
        assert handle.database is default_db
        assert handle.schema.collection == "notes"

    @pytest.mark.asyncio
    async def test_no_connection(self):
        with pytest.raises(ConnectionNotReadyError):
            await ConnectorRegistry().get_handle(Note)

    @pytest.mark.asyncio
    async def test_configuration_error_is_not_translated(self, connector, database):
        with pytest.raises(SchemaConfigError):
            await connector.find(Unconfigured, RestRequest())
        assert "Unconfigured" not in await database.list_collection_names()

"""
Tests for the JSON-backed order and file stores.
"""

import json
import random

import pytest

from print_shop_backend.errors import NotFoundError, StoreError
from print_shop_backend.file_store import FileStore
from print_shop_backend.json_store import JsonListStore
from print_shop_backend.order_store import OrderStore
from print_shop_backend.utils import generate_order_id


class _ConstantRandom(random.Random):
    """Always draws the same tiebreak, forcing order id collisions."""

    def randrange(self, *args, **kwargs):
        return 42


@pytest.fixture
def orders_path(tmp_path):
    return tmp_path / "data" / "orders.json"


class TestJsonListStore:
    def test_missing_file_reads_as_empty(self, orders_path):
        store = JsonListStore(orders_path, label="orders")
        assert store.read_all() == []
        assert not orders_path.exists()

    def test_non_array_content_is_an_error(self, orders_path):
        store = JsonListStore(orders_path, label="orders")
        orders_path.write_text(json.dumps({"orders": []}), encoding="utf-8")

        with pytest.raises(StoreError):
            store.read_all()

    def test_unreadable_path_is_an_error(self, tmp_path):
        # A directory where the file should be
        (tmp_path / "orders.json").mkdir()
        store = JsonListStore(tmp_path / "orders.json", label="orders")

        with pytest.raises(StoreError) as excinfo:
            store.read_all()
        assert excinfo.value.message == "Failed to read orders"

    def test_failed_mutation_does_not_write(self, orders_path):
        store = JsonListStore(orders_path, label="orders")
        store.write_all([{"n": 1}])

        def _explode(records):
            records.append({"n": 2})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            store.mutate(_explode)
        assert store.read_all() == [{"n": 1}]

    def test_interleaved_writers_lose_updates(self, orders_path):
        first = JsonListStore(orders_path, label="orders")
        second = JsonListStore(orders_path, label="orders")

        snapshot_a = first.read_all()
        snapshot_b = second.read_all()
        snapshot_a.append({"writer": "a"})
        first.write_all(snapshot_a)
        snapshot_b.append({"writer": "b"})
        second.write_all(snapshot_b)

        # Last write wins; writer a's record is gone
        assert first.read_all() == [{"writer": "b"}]


class TestOrderStore:
    def test_create_stamps_and_persists(self, orders_path):
        store = OrderStore(orders_path, clock=lambda: 1700000000123, rng=random.Random(5))

        order = store.create_order({"customerName": "Ada"})

        assert order["orderId"].startswith("ORD-1700000000123-")
        assert order["status"] == "pending"
        assert order["customerName"] == "Ada"
        assert json.loads(orders_path.read_text(encoding="utf-8")) == [order]

    def test_ids_unique_across_creations(self, orders_path):
        store = OrderStore(orders_path)
        ids = [store.create_order({})["orderId"] for _ in range(50)]
        assert len(set(ids)) == 50

    def test_colliding_ids_are_stored_as_is(self, orders_path):
        store = OrderStore(orders_path, clock=lambda: 1700000000000, rng=_ConstantRandom())

        first = store.create_order({"n": 1})
        second = store.create_order({"n": 2})

        assert first["orderId"] == second["orderId"] == "ORD-1700000000000-0042"
        assert len(store.list_orders()) == 2
        # Lookups and updates hit the first match only
        assert store.get_order(first["orderId"])["n"] == 1
        store.update_status(first["orderId"], "completed")
        assert [order["status"] for order in store.list_orders()] == ["completed", "pending"]

    def test_get_unknown_order(self, orders_path):
        store = OrderStore(orders_path)
        with pytest.raises(NotFoundError):
            store.get_order("ORD-nope")

    def test_update_unknown_order_does_not_write(self, orders_path):
        store = OrderStore(orders_path)
        store.create_order({"n": 1})
        before = orders_path.read_bytes()

        with pytest.raises(NotFoundError):
            store.update_status("ORD-nope", "completed")
        assert orders_path.read_bytes() == before

    def test_delete_all(self, orders_path):
        store = OrderStore(orders_path)
        store.create_order({})
        store.delete_all()
        assert store.list_orders() == []
        assert json.loads(orders_path.read_text(encoding="utf-8")) == []


class TestFileStore:
    @pytest.fixture
    def store(self, tmp_path):
        return FileStore(
            metadata_path=tmp_path / "data" / "files.json",
            upload_root=tmp_path / "uploads",
            max_upload_bytes=1024,
        )

    def _write_blob(self, store, filename, data=b"blob"):
        name, path = store.new_blob_path(filename)
        path.write_bytes(data)
        return store.build_record(filename, len(data), "application/pdf", name)

    def test_blob_names_are_unique_per_upload(self, store):
        names = {store.new_blob_path("same.pdf")[0] for _ in range(20)}
        assert len(names) == 20

    def test_record_paths(self, store):
        record = self._write_blob(store, "flyer.pdf")
        assert record.path.startswith("/uploads/")
        assert record.path.endswith("-flyer.pdf")
        assert record.server_path == str(store.upload_root / record.path.rsplit("/", 1)[1])

    def test_add_records_appends_in_order(self, store):
        first = store.add_records([self._write_blob(store, "a.pdf")])
        second = store.add_records([self._write_blob(store, "b.pdf"), self._write_blob(store, "c.pdf")])

        listed = store.list_files()
        assert listed == first + second
        assert [record["name"] for record in listed] == ["a.pdf", "b.pdf", "c.pdf"]
        assert "serverPath" in listed[0]

    def test_delete_all_is_best_effort(self, store, tmp_path):
        records = store.add_records([self._write_blob(store, "a.pdf"), self._write_blob(store, "b.pdf")])
        # Turn one blob into a non-empty directory so unlink fails
        blocked = tmp_path / "uploads" / "blocked"
        (blocked / "inner").mkdir(parents=True)
        records.append({"name": "c.pdf", "size": 1, "type": "application/pdf", "path": "/uploads/blocked", "serverPath": str(blocked)})
        store._store.write_all(records)

        removed = store.delete_all()

        assert removed == 2
        assert store.list_files() == []
        assert blocked.exists()

    def test_delete_all_skips_records_without_server_path(self, store):
        store._store.write_all([{"name": "legacy.pdf", "size": 1, "type": "application/pdf", "path": "/uploads/x"}])
        assert store.delete_all() == 0
        assert store.list_files() == []


def test_generate_order_id_format():
    order_id = generate_order_id(clock=lambda: 1234, rng=random.Random(0))
    prefix, millis, tiebreak = order_id.split("-")
    assert prefix == "ORD"
    assert millis == "1234"
    assert len(tiebreak) == 4 and tiebreak.isdigit()

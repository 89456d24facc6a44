"""Tests for loading the certificate dataset."""

import json

import httpx
import pytest

from app.certificate_store import CertificateRecord, CertificateStore
from app.errors import LoadError


class TestJsonDataset:
    @pytest.mark.asyncio
    async def test_loads_records(self, dataset_path):
        store = CertificateStore(str(dataset_path))
        records = await store.load()

        assert len(records) == 3
        assert records[0] == CertificateRecord("AWS-17-JAN-26-CC-001", "Jane Doe")
        assert store.loaded
        assert store.load_error is None

    @pytest.mark.asyncio
    async def test_extra_fields_are_kept(self, dataset_path):
        store = CertificateStore(str(dataset_path))
        records = await store.load()

        assert records[1].extra == {"track": "Serverless"}
        assert records[1].to_dict() == {
            "certificateId": "AWS-17-JAN-26-CC-002",
            "name": "Rahul Patil",
            "track": "Serverless",
        }

    @pytest.mark.asyncio
    async def test_document_is_served_verbatim(self, dataset_path):
        store = CertificateStore(str(dataset_path))
        await store.load()

        assert store.document == json.loads(dataset_path.read_text(encoding="utf-8"))

    @pytest.mark.asyncio
    async def test_missing_file_raises_load_error(self, tmp_path):
        store = CertificateStore(str(tmp_path / "nope.json"))

        with pytest.raises(LoadError):
            await store.load()
        assert not store.loaded
        assert "not found" in store.load_error

    @pytest.mark.asyncio
    async def test_invalid_json_raises_load_error(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(LoadError):
            await CertificateStore(str(path)).load()

    @pytest.mark.asyncio
    async def test_missing_certificates_list_raises_load_error(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"records": []}), encoding="utf-8")

        with pytest.raises(LoadError):
            await CertificateStore(str(path)).load()

    @pytest.mark.asyncio
    async def test_record_without_id_raises_load_error(self, tmp_path):
        path = tmp_path / "noid.json"
        path.write_text(json.dumps({"certificates": [{"name": "Jane Doe"}]}), encoding="utf-8")

        with pytest.raises(LoadError):
            await CertificateStore(str(path)).load()

    def test_records_before_load_raises(self, dataset_path):
        with pytest.raises(LoadError):
            CertificateStore(str(dataset_path)).records


class TestCsvDataset:
    @pytest.mark.asyncio
    async def test_header_variations_are_normalized(self, tmp_path):
        path = tmp_path / "certificates.csv"
        path.write_text(
            "\ufeffCertificate ID,Full Name,Course\n"
            "AWS-17-JAN-26-CC-001,Jane Doe,Cloud\n",
            encoding="utf-8",
        )
        store = CertificateStore(str(path))
        records = await store.load()

        assert records == (CertificateRecord("AWS-17-JAN-26-CC-001", "Jane Doe"),)
        assert records[0].extra == {"Course": "Cloud"}
        assert store.document["certificates"][0]["certificateId"] == "AWS-17-JAN-26-CC-001"


class TestUrlDataset:
    @pytest.mark.asyncio
    async def test_fetches_document_over_http(self):
        def handler(request):
            assert request.url.path == "/certificates.json"
            return httpx.Response(200, json={"certificates": [{"certificateId": "X-1", "name": "A"}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = CertificateStore("https://certs.example.com/certificates.json", client=client)
            records = await store.load()

        assert [r.certificate_id for r in records] == ["X-1"]

    @pytest.mark.asyncio
    async def test_http_error_raises_load_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = CertificateStore("https://certs.example.com/certificates.json", client=client)
            with pytest.raises(LoadError):
                await store.load()

        # Reported once, no automatic retry.
        assert len(calls) == 1

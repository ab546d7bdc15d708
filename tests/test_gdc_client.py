"""
GDC client tests without hitting the network.

The client's requests.Session is replaced by a Mock whose post/get return
canned responses.
"""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from tcga_lgg.data_access import GDCClient, GDCRequestError, build_filters


def json_response(hits):
    response = Mock(status_code=200)
    response.json.return_value = {"data": {"hits": hits}}
    response.raise_for_status.return_value = None
    return response


def download_response(chunks):
    response = MagicMock(status_code=200)
    response.__enter__.return_value = response
    response.iter_content.return_value = chunks
    response.raise_for_status.return_value = None
    return response


def test_build_filters():
    filters = build_filters("TCGA-LGG", {"data_type": "Masked Somatic Mutation", "access": ["open"]})
    assert filters["op"] == "and"
    assert filters["content"][0]["content"] == {"field": "cases.project.project_id", "value": ["TCGA-LGG"]}
    assert filters["content"][1]["content"] == {"field": "data_type", "value": ["Masked Somatic Mutation"]}
    assert filters["content"][2]["content"]["value"] == ["open"]


def test_search_follows_pagination():
    session = Mock()
    session.post.side_effect = [
        json_response([{"file_id": "a"}, {"file_id": "b"}]),
        json_response([{"file_id": "c"}]),
    ]
    client = GDCClient(base_url="https://gdc.test/", session=session, page_size=2)
    hits = client.search_files(build_filters("TCGA-LGG"), ["file_id"])

    assert [h["file_id"] for h in hits] == ["a", "b", "c"]
    assert session.post.call_count == 2
    first_url = session.post.call_args_list[0].args[0]
    second_payload = session.post.call_args_list[1].kwargs["json"]
    assert first_url == "https://gdc.test/files"
    assert second_payload["from"] == 2
    assert second_payload["fields"] == "file_id"


def test_query_expression_files_filters():
    session = Mock()
    session.post.return_value = json_response([])
    client = GDCClient(session=session)
    client.query_expression_files("TCGA-LGG")

    payload = session.post.call_args.kwargs["json"]
    fields = {c["content"]["field"]: c["content"]["value"] for c in payload["filters"]["content"]}
    assert fields["analysis.workflow_type"] == ["STAR - Counts"]
    assert fields["data_type"] == ["Gene Expression Quantification"]
    assert "cases.samples.submitter_id" in payload["fields"]


def test_fetch_clinical_uses_cases_endpoint():
    session = Mock()
    session.post.return_value = json_response([{"submitter_id": "TCGA-DB-5270"}])
    client = GDCClient(base_url="https://gdc.test", session=session)
    cases = client.fetch_clinical("TCGA-LGG")

    assert cases == [{"submitter_id": "TCGA-DB-5270"}]
    assert session.post.call_args.args[0] == "https://gdc.test/cases"
    payload = session.post.call_args.kwargs["json"]
    assert payload["expand"] == "demographic,diagnoses"
    assert payload["filters"]["content"][0]["content"]["field"] == "project.project_id"


def test_search_error_is_wrapped():
    session = Mock()
    session.post.side_effect = requests.exceptions.ConnectionError("offline")
    client = GDCClient(session=session)
    with pytest.raises(GDCRequestError, match="offline"):
        client.query_mutation_files("TCGA-LGG")


def test_unexpected_payload_is_wrapped():
    session = Mock()
    response = Mock()
    response.json.return_value = {"warnings": {}}
    session.post.return_value = response
    with pytest.raises(GDCRequestError):
        GDCClient(session=session).query_mutation_files("TCGA-LGG")


def test_download_file_writes_and_caches(tmp_path):
    session = Mock()
    session.get.return_value = download_response([b"gene_id\t", b"", b"unstranded\n"])
    client = GDCClient(base_url="https://gdc.test", session=session)

    path = client.download_file("uuid-1", "counts.tsv", str(tmp_path))
    assert open(path).read() == "gene_id\tunstranded\n"
    assert session.get.call_args.args[0] == "https://gdc.test/data/uuid-1"

    client.download_file("uuid-1", "counts.tsv", str(tmp_path))
    assert session.get.call_count == 1


def test_download_failure_leaves_no_file(tmp_path):
    session = Mock()
    response = download_response([])
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
    session.get.return_value = response
    client = GDCClient(session=session)

    with pytest.raises(GDCRequestError):
        client.download_file("missing", "missing.maf.gz", str(tmp_path))
    assert list(tmp_path.iterdir()) == []


def test_download_files_maps_ids_to_paths(tmp_path):
    session = Mock()
    session.get.side_effect = lambda *args, **kwargs: download_response([b"x"])
    client = GDCClient(session=session)
    paths = client.download_files([
        {"file_id": "f1", "file_name": "a.maf.gz"},
        {"file_id": "f2", "file_name": "b.maf.gz"},
    ], str(tmp_path))
    assert sorted(paths) == ["f1", "f2"]
    assert paths["f2"] == str(tmp_path / "b.maf.gz")


def test_interrupted_download_removes_partial_file(tmp_path):
    def chunks(**kwargs):
        yield b"abc"
        raise OSError("disk full")

    response = download_response([])
    response.iter_content.side_effect = chunks
    session = Mock()
    session.get.return_value = response
    client = GDCClient(session=session)

    with pytest.raises(OSError, match="disk full"):
        client.download_file("uuid-2", "x.maf.gz", str(tmp_path))
    assert list(tmp_path.iterdir()) == []

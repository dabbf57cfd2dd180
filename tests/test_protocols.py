# tests/test_protocols.py
"""
测试协议层纯函数 (不涉及会话与传输)。
"""

from omp_core.protocols import authenticate, configs, envelope, reports, tasks
from omp_core.protocols.reports import ReportFormat


def test_authenticate_fragment_shape():
    fragment = authenticate.build_authenticate_request("admin", "pa<ss")
    creds = envelope.parse(fragment.encode()).find("authenticate/credentials")

    assert creds.find("username").text == "admin"
    assert creds.find("password").text == "pa<ss"


def test_authenticate_fragment_is_deterministic():
    a = authenticate.build_authenticate_request("u", "p")
    b = authenticate.build_authenticate_request("u", "p")
    assert a == b


def test_mask_credentials():
    fragment = authenticate.build_authenticate_request("admin", "hunter2")
    masked = authenticate.mask_credentials(fragment + "<get_tasks/>")

    assert "hunter2" not in masked
    assert "<password>******</password>" in masked
    assert "<username>admin</username>" in masked
    assert masked.endswith("<get_tasks/>")


def test_split_task_fields():
    fields, refs = tasks.split_task_fields(
        {"name": "n", "comment": "c", "target": "t", "config": "cf", "schedule": None}
    )

    assert fields == {"name": "n", "comment": "c"}
    assert refs == {"target": "t", "config": "cf", "schedule": None}


def test_create_config_from_rcfile():
    xml = configs.build_create_config_request("imported", "cmNmaWxl")
    req = envelope.parse(xml.encode()).find("create_config")
    assert req.attrib == {"name": "imported", "rcfile": "cmNmaWxl"}


def test_find_format_id_is_case_sensitive():
    formats = [ReportFormat("f1", "LaTeX", "tex", "text/plain", "")]

    assert reports.find_format_id(formats, "LaTeX") == "f1"
    assert reports.find_format_id(formats, "latex") is None


def test_needs_decoding():
    for name in ("HTML", "NBE", "PDF", "ARF", "TXT", "LaTeX"):
        assert reports.needs_decoding(name)
    assert not reports.needs_decoding("XML")
    assert not reports.needs_decoding("CSV Results")

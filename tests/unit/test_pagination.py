from api.schemas.common import build_pagination, page_offset


def test_empty_result_reports_one_page():
    meta = build_pagination(page=1, limit=20, total=0)
    assert meta.total_pages == 1
    assert meta.has_next is False
    assert meta.has_prev is False


def test_middle_page():
    meta = build_pagination(page=2, limit=10, total=25)
    assert meta.total_pages == 3
    assert meta.has_next is True
    assert meta.has_prev is True
    assert page_offset(2, 10) == 10

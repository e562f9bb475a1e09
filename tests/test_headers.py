from streamtable.headers import Headers, RecordHeader, headers_from_records


def test_headers_from_records_reads_values():
    headers = headers_from_records([RecordHeader(b"key", b"value")])
    assert headers["key"] == b"value"


def test_headers_from_no_records_is_empty():
    headers = headers_from_records(None)
    assert isinstance(headers, Headers)
    assert len(headers) == 0


def test_headers_from_records_later_wins():
    headers = headers_from_records(
        [RecordHeader(b"key", b"first"), RecordHeader(b"key", b"second")]
    )
    assert headers == {"key": b"second"}


def test_merged_all_empty_is_none():
    assert Headers().merged() is None
    assert Headers().merged(None, Headers(), {}) is None


def test_merged_later_overrides_earlier():
    base = Headers({"a": b"1", "b": b"2"})
    result = base.merged({"b": b"3"}, None, {"c": b"4"})
    assert result == {"a": b"1", "b": b"3", "c": b"4"}
    assert isinstance(result, Headers)


def test_merged_does_not_mutate_receiver():
    base = Headers({"a": b"1"})
    base.merged({"a": b"2"})
    assert base == {"a": b"1"}


def test_merged_returns_new_instance():
    base = Headers({"header-key": b"header-val"})
    result = base.merged()
    assert result == base
    assert result is not base


def test_to_records_round_trip():
    headers = Headers({"key": b"headerValue", "other": b""})
    assert headers_from_records(headers.to_records()) == headers


def test_to_records_of_empty_is_empty_list():
    assert Headers().to_records() == []
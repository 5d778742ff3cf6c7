"""
Tests for the logging helpers.
"""

import logging

from briefgen.api.app import create_app
from briefgen.utils.logging import RequestIdFilter, StructuredLogger


def test_structured_logger_renders_fields(caplog):
    caplog.set_level(logging.INFO, logger='briefgen.test')

    StructuredLogger('briefgen.test').info("Stage started: blog_search", topic="pots", skipped=None)

    record = caplog.records[-1]
    assert record.getMessage() == "Stage started: blog_search | topic=pots"
    assert record.fields == {"topic": "pots", "skipped": None}


def test_request_id_filter_outside_request():
    record = logging.LogRecord('x', logging.INFO, __file__, 1, 'msg', None, None)

    assert RequestIdFilter().filter(record) is True
    assert record.request_id == '-'


def test_request_id_filter_inside_request():
    app = create_app('testing')
    record = logging.LogRecord('x', logging.INFO, __file__, 1, 'msg', None, None)

    with app.test_request_context('/'):
        from flask import g
        g.request_id = 'req_abc'
        RequestIdFilter().filter(record)

    assert record.request_id == 'req_abc'

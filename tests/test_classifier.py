"""
tests/test_classifier.py
Partitioning of call history records into classification buckets.
"""

import copy

import pytest

from callreport.processing.classifier import classify_call_logs
from callreport.processing.exceptions import InputError

from factories import external_inbound, external_outbound, internal_leg, record


def _mixed_records():
    return [
        external_inbound(id='in-ext'),
        external_outbound(id='out-ext'),
        internal_leg('outbound', id='out-int'),
        internal_leg('inbound', id='in-int'),
        record(id='missed', direction='inbound', call_result='missed', connect_type='external'),
        record(id='no-answer', direction='outbound', call_result='no_answer', connect_type='external'),
        record(id='voicemail', direction='inbound', call_result='voicemail', connect_type='internal'),
        # answered is an inbound result only
        record(id='odd', direction='outbound', call_result='answered', connect_type='external'),
    ]


class TestClassification:
    def test_buckets(self):
        classified = classify_call_logs(_mixed_records())

        assert [r.id for r in classified.inbounds] == ['in-ext']
        assert [r.id for r in classified.outbounds] == ['out-ext']
        assert [r.id for r in classified.internal_outbounds] == ['out-int']
        assert [r.id for r in classified.internal_inbounds] == ['in-int']

    def test_internal_legs_are_outbound_then_inbound(self):
        records = [
            internal_leg('inbound', id='a'),
            internal_leg('outbound', id='b'),
            internal_leg('inbound', id='c'),
        ]
        classified = classify_call_logs(records)

        assert [r.id for r in classified.internal_legs] == ['b', 'a', 'c']

    def test_every_record_lands_in_at_most_one_bucket(self):
        records = _mixed_records()
        classified = classify_call_logs(records)

        buckets = (
            classified.inbounds + classified.outbounds +
            classified.internal_outbounds + classified.internal_inbounds
        )
        ids = [r.id for r in buckets]

        assert len(ids) == len(set(ids))
        assert set(ids) | {'missed', 'no-answer', 'voicemail', 'odd'} == {r.id for r in records}

    def test_unclassifiable_records_are_dropped(self):
        classified = classify_call_logs([
            record(id='x', direction='inbound', call_result='missed', connect_type='external')
        ])

        assert classified.inbounds == []
        assert classified.outbounds == []
        assert classified.internal_legs == []

    def test_classification_is_idempotent_and_pure(self):
        records = _mixed_records()
        snapshot = copy.deepcopy(records)

        first = classify_call_logs(records)
        second = classify_call_logs(records)

        assert first == second
        assert records == snapshot

    def test_non_sequence_input_is_rejected(self):
        with pytest.raises(InputError):
            classify_call_logs(None)

        with pytest.raises(InputError):
            classify_call_logs({'call_logs': []})

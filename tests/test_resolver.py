"""
tests/test_resolver.py
Caller identity resolution of external outbound calls via call paths.
"""

import threading
import time

import pytest

from callreport.monitoring.error_handler import ErrorHandler
from callreport.processing.exceptions import ResolutionError
from callreport.processing.models import CallPathDetail
from callreport.processing.resolver import CallerIdentityResolver, apply_call_path
from callreport.zoom.exceptions import CallLogNotFoundError

from factories import call_path, external_outbound

MASKED_PATH = call_path(
    {'operator_name': 'Rep Three', 'operator_ext_id': 'ext-id-300', 'operator_ext_number': '300'},
    {'caller_email': 'rep300@example.com'},
)

UNMASKED_PATH = call_path(
    {'operator_name': '', 'operator_ext_id': '', 'operator_ext_number': ''},
    {'caller_email': 'someone@example.com'},
)


def _fetcher(paths):
    def fetch(call_log_id):
        result = paths[call_log_id]
        if isinstance(result, Exception):
            raise result
        return result
    return fetch


class TestApplyCallPath:
    def test_masked_caller_is_replaced_from_hops(self):
        original = external_outbound(id='out-1', caller_ext_number='999', caller_email='ivr@example.com')

        resolved = apply_call_path(original, CallPathDetail.from_dict(MASKED_PATH, 'out-1'))

        assert resolved is not original
        assert resolved.caller_name == 'Rep Three'
        assert resolved.caller_ext_id == 'ext-id-300'
        assert resolved.caller_ext_number == '300'
        assert resolved.caller_email == 'rep300@example.com'
        # the input record is untouched
        assert original.caller_ext_number == '999'
        assert original.caller_email == 'ivr@example.com'

    def test_empty_operator_extension_leaves_record_unmodified(self):
        original = external_outbound(id='out-1')

        resolved = apply_call_path(original, CallPathDetail.from_dict(UNMASKED_PATH, 'out-1'))

        assert resolved is original

    def test_single_hop_with_operator_extension_is_an_error(self):
        path = call_path({'operator_ext_number': '300'})

        with pytest.raises(ResolutionError) as exc:
            apply_call_path(external_outbound(id='out-1'), CallPathDetail.from_dict(path, 'out-1'))

        assert exc.value.call_log_id == 'out-1'

    def test_empty_path_is_an_error(self):
        with pytest.raises(ResolutionError):
            apply_call_path(external_outbound(), CallPathDetail.from_dict(call_path(), 'log-1'))

    def test_malformed_payload_is_an_error(self):
        with pytest.raises(ResolutionError):
            CallPathDetail.from_dict({'id': 'x'}, 'x')

        with pytest.raises(ResolutionError):
            CallPathDetail.from_dict(['not', 'an', 'object'], 'x')


class TestCallerIdentityResolver:
    def test_resolves_and_keeps_order(self):
        records = [
            external_outbound(id='a'),
            external_outbound(id='b'),
            external_outbound(id='c'),
        ]
        resolver = CallerIdentityResolver(
            _fetcher({'a': UNMASKED_PATH, 'b': MASKED_PATH, 'c': UNMASKED_PATH}),
            max_workers=3
        )

        resolved, errors = resolver.resolve(records)

        assert errors == []
        assert [r.id for r in resolved] == ['a', 'b', 'c']
        assert resolved[0] is records[0]
        assert resolved[1].caller_ext_number == '300'
        assert resolved[2] is records[2]

    def test_order_is_independent_of_completion_order(self):
        delays = {'slow': 0.2, 'fast': 0.0}

        def fetch(call_log_id):
            time.sleep(delays[call_log_id])
            return MASKED_PATH

        records = [external_outbound(id='slow'), external_outbound(id='fast')]
        resolved, _ = CallerIdentityResolver(fetch, max_workers=2).resolve(records)

        assert [r.id for r in resolved] == ['slow', 'fast']

    def test_failed_fetch_keeps_original_record_and_reports_error(self):
        records = [external_outbound(id='ok'), external_outbound(id='gone')]
        handler = ErrorHandler()
        resolver = CallerIdentityResolver(
            _fetcher({'ok': MASKED_PATH, 'gone': CallLogNotFoundError('not found', status_code=404)}),
            error_handler=handler
        )

        resolved, errors = resolver.resolve(records)

        assert resolved[0].caller_ext_number == '300'
        assert resolved[1] is records[1]
        assert len(errors) == 1
        assert errors[0].call_log_id == 'gone'
        assert isinstance(errors[0].__cause__, CallLogNotFoundError)
        assert handler.get_error_statistics()['by_component'] == {'caller_identity_resolver': 1}

    def test_short_path_is_reported_not_raised(self):
        records = [external_outbound(id='short')]
        resolver = CallerIdentityResolver(_fetcher({'short': call_path({'operator_ext_number': '300'})}))

        resolved, errors = resolver.resolve(records)

        assert resolved == records
        assert [e.call_log_id for e in errors] == ['short']

    def test_concurrency_is_bounded(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def fetch(call_log_id):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return UNMASKED_PATH

        records = [external_outbound(id=f'log-{i}') for i in range(12)]
        CallerIdentityResolver(fetch, max_workers=3).resolve(records)

        assert peak <= 3

    def test_interrupt_cancels_pending_fetches(self):
        fetched = []
        gate = threading.Event()

        def fetch(call_log_id):
            fetched.append(call_log_id)
            if call_log_id == 'log-0':
                raise KeyboardInterrupt
            gate.wait(1)
            return UNMASKED_PATH

        handler = ErrorHandler()
        records = [external_outbound(id=f'log-{i}') for i in range(6)]

        with pytest.raises(KeyboardInterrupt):
            CallerIdentityResolver(fetch, max_workers=1, error_handler=handler).resolve(records)
        gate.set()

        # at most the fetch already running when the interrupt arrived
        assert fetched[0] == 'log-0'
        assert len(fetched) <= 2
        assert handler.get_error_statistics()['total_errors'] == 0

    def test_accepts_call_path_detail_from_fetcher(self):
        detail = CallPathDetail.from_dict(MASKED_PATH, 'a')
        resolved, errors = CallerIdentityResolver(lambda _id: detail).resolve([external_outbound(id='a')])

        assert errors == []
        assert resolved[0].caller_email == 'rep300@example.com'

    def test_empty_input(self):
        resolver = CallerIdentityResolver(_fetcher({}))
        assert resolver.resolve([]) == ([], [])

    def test_rejects_zero_workers(self):
        with pytest.raises(ValueError):
            CallerIdentityResolver(_fetcher({}), max_workers=0)

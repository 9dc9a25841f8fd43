from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests
from sqlalchemy import select

from fishmonger.extensions import db
from fishmonger.models import SmsLog
from fishmonger.services.errors import ValidationError
from fishmonger.services.notifications import (
    NotificationDispatcher,
    NotificationRequest,
    NotificationResult,
    SmsGatewayNotifier,
    build_order_ready_message,
)


class RecordingNotifier:
    def __init__(self, result=None):
        self.calls = []
        self.result = result or NotificationResult(success=True)

    def notify(self, phone, message, order_id=None):
        self.calls.append(SimpleNamespace(phone=phone, message=message, order_id=order_id))
        return self.result


@pytest.fixture
def recorder(engine):
    notifier = RecordingNotifier()
    engine.dispatcher.notifier = notifier
    return notifier


def _gateway(**overrides):
    options = dict(enabled=True, gateway_url='https://sms.example/send', api_key='k3y', timeout=3)
    options.update(overrides)
    return SmsGatewayNotifier(**options)


def _logs():
    return db.session.execute(select(SmsLog)).scalars().all()


def test_message_lists_every_item():
    message = build_order_ready_message(
        'Jean Dupont',
        [('Saumon frais', Decimal('2.000'), 'kg'), ('Huîtres', Decimal('1.500'), 'douzaine')],
    )
    assert message == (
        'Bonjour Jean Dupont, votre commande est prête : '
        'Saumon frais (2 kg), Huîtres (1.5 douzaine). Merci !'
    )


class TestReadyNotification:

    def test_ready_notifies_once_with_all_items(self, engine, records, recorder):
        order = engine.create_order(
            records['customer'],
            [{'productId': records['salmon'], 'quantity': 2}, {'productId': records['oysters'], 'quantity': 1}],
        )

        result = engine.transition_status(order.id, 'READY')

        assert result.notification_queued is True
        assert len(recorder.calls) == 1
        call = recorder.calls[0]
        assert call.phone == '06 12 34 56 78'
        assert call.order_id == order.id
        assert 'Saumon frais (2 kg)' in call.message
        assert 'Huîtres (1 douzaine)' in call.message

    def test_ready_to_ready_does_not_notify_again(self, engine, records, recorder):
        order = engine.create_order(records['customer'], [{'productId': records['salmon'], 'quantity': 1}])
        engine.transition_status(order.id, 'READY')

        again = engine.transition_status(order.id, 'READY')

        assert again.notification_queued is False
        assert len(recorder.calls) == 1

    def test_other_transitions_do_not_notify(self, engine, records, recorder):
        order = engine.create_order(records['customer'], [{'productId': records['salmon'], 'quantity': 1}])
        engine.transition_status(order.id, 'DELIVERED')
        engine.delete_order(order.id)
        assert recorder.calls == []

    def test_customer_without_phone_is_skipped(self, engine, records, recorder):
        order = engine.create_order(records['customer_no_phone'], [{'productId': records['salmon'], 'quantity': 1}])

        result = engine.transition_status(order.id, 'READY')

        assert result.notification_queued is False
        assert result.order.status == 'READY'
        assert recorder.calls == []

    def test_failed_send_does_not_undo_transition(self, engine, records):
        engine.dispatcher.notifier = _gateway(gateway_url=None)
        order = engine.create_order(records['customer'], [{'productId': records['salmon'], 'quantity': 1}])

        result = engine.transition_status(order.id, 'READY')

        assert result.notification_queued is True
        assert engine.get_order(order.id).status == 'READY'
        [log] = _logs()
        assert log.success is False
        assert log.order_id == order.id

    def test_no_notification_when_transaction_rolls_back(self, engine, records, recorder, monkeypatch):
        order = engine.create_order(records['customer'], [{'productId': records['salmon'], 'quantity': 1}])

        def _boom(*args, **kwargs):
            raise RuntimeError('write failed')

        monkeypatch.setattr(engine.orders, 'update_status', _boom)
        with pytest.raises(RuntimeError):
            engine.transition_status(order.id, 'READY')
        assert recorder.calls == []


class TestManualNotification:

    def test_sends_synchronously(self, engine, records, recorder):
        order = engine.create_order(records['customer'], [{'productId': records['salmon'], 'quantity': 1}])

        result = engine.send_ready_notification(order.id)

        assert result.success is True
        assert len(recorder.calls) == 1

    def test_customer_without_phone_is_a_validation_error(self, engine, records, recorder):
        order = engine.create_order(records['customer_no_phone'], [{'productId': records['salmon'], 'quantity': 1}])
        with pytest.raises(ValidationError):
            engine.send_ready_notification(order.id)


class TestSmsGatewayNotifier:

    def test_disabled_logs_success_without_calling_gateway(self, app_ctx, monkeypatch):
        monkeypatch.setattr(requests, 'get', lambda *a, **kw: pytest.fail('gateway called'))

        result = _gateway(enabled=False).notify('0612345678', 'Bonjour', 'order-1')

        assert result.success is True
        [log] = _logs()
        assert log.success is True
        assert log.error_message == 'SMS disabled'

    def test_missing_configuration_fails(self, app_ctx):
        result = _gateway(api_key='').notify('0612345678', 'Bonjour', 'order-1')

        assert result.success is False
        assert 'not configured' in result.error
        assert _logs()[0].success is False

    def test_blank_phone_fails(self, app_ctx):
        result = _gateway().notify('   ', 'Bonjour', 'order-1')
        assert result.error == 'Invalid phone number'

    def test_sends_query_parameters_with_timeout(self, app_ctx, monkeypatch):
        captured = {}

        def fake_get(url, params=None, timeout=None):
            captured.update(url=url, params=params, timeout=timeout)
            return SimpleNamespace(status_code=200)

        monkeypatch.setattr(requests, 'get', fake_get)

        result = _gateway().notify('0612345678', 'Votre commande est prête', 'order-1')

        assert result.success is True
        assert captured == {
            'url': 'https://sms.example/send',
            'params': {'phone': '0612345678', 'text': 'Votre commande est prête', 'apikey': 'k3y'},
            'timeout': 3,
        }
        [log] = _logs()
        assert log.success is True
        assert log.error_message is None

    def test_gateway_error_status_fails(self, app_ctx, monkeypatch):
        monkeypatch.setattr(requests, 'get', lambda *a, **kw: SimpleNamespace(status_code=503))

        result = _gateway().notify('0612345678', 'Bonjour', 'order-1')

        assert result.success is False
        assert result.error == 'SMS Gateway returned status 503'

    def test_network_error_fails(self, app_ctx, monkeypatch):
        def fake_get(*args, **kwargs):
            raise requests.Timeout('slow gateway')

        monkeypatch.setattr(requests, 'get', fake_get)

        result = _gateway().notify('0612345678', 'Bonjour', 'order-1')

        assert result.success is False
        assert 'Timeout' in result.error
        assert _logs()[0].success is False

    def test_log_write_failure_is_swallowed(self, app_ctx, monkeypatch):
        def broken_commit():
            raise RuntimeError('disk full')

        monkeypatch.setattr(db.session, 'commit', broken_commit)

        result = _gateway(enabled=False).notify('0612345678', 'Bonjour', 'order-1')

        assert result.success is True


def test_async_dispatcher_runs_in_worker_app_context(app):
    notifier = RecordingNotifier()
    dispatcher = NotificationDispatcher(app, notifier, asynchronous=True, max_workers=1)
    try:
        future = dispatcher.dispatch(NotificationRequest(phone='0612345678', message='Bonjour', order_id='o-1'))
        assert future.result(timeout=10).success is True
    finally:
        dispatcher.shutdown()
    assert notifier.calls[0].order_id == 'o-1'


def test_dispatcher_contains_notifier_exceptions(app):
    class Exploding:
        def notify(self, phone, message, order_id=None):
            raise RuntimeError('boom')

    dispatcher = NotificationDispatcher(app, Exploding(), asynchronous=False)
    result = dispatcher.dispatch(NotificationRequest(phone='0612345678', message='Bonjour')).result()
    assert result.success is False
    assert 'boom' in result.error


def test_plain_mobile_number_receives_single_ready_message(engine, records, recorder):
    customer = engine.parties.create_customer({'name': 'Sophie Bernard', 'phone': '0612345678'})
    order = engine.create_order(customer.id, [{'productId': records['oysters'], 'quantity': 2}])

    engine.transition_status(order.id, 'READY')
    engine.transition_status(order.id, 'READY')

    assert [call.phone for call in recorder.calls] == ['0612345678']
    assert 'Huîtres (2 douzaine)' in recorder.calls[0].message

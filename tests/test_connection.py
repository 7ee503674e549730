"""
Tests for the connection state machine
"""
import json

import pytest

from logiq_client.connection import Connection, ConnectionState
from logiq_client.events.bus import EventName
from logiq_client.jsonrpc import InvalidArgument, MalformedResponse, RpcRequest, RpcResponse, TransportError

ADDRESS = "ws://appliance.test:8080/logiq"


@pytest.fixture
def connection(bus, transports):
    return Connection(ADDRESS, bus=bus, transport_factory=transports)


def sent_methods(transport):
    return [json.loads(frame)["method"] for frame in transport.sent]


class TestLifecycle:
    """Test state transitions"""

    def test_starts_connecting(self, connection, transports):
        assert connection.state is ConnectionState.CONNECTING
        assert not connection.is_open()
        assert transports.last.listener is connection
        assert transports.last.address == ADDRESS

    def test_open(self, connection, transports, recorder):
        transports.last.open()
        assert connection.state is ConnectionState.OPEN
        assert connection.is_open()
        assert recorder.of(EventName.CONNECTION_OPENED) == [(EventName.CONNECTION_OPENED, ADDRESS, None)]

    def test_close_after_open(self, connection, transports, recorder):
        transports.last.open()
        transports.last.drop()
        assert connection.state is ConnectionState.CLOSED
        assert not connection.is_open()
        assert recorder.of(EventName.CONNECTION_CLOSED) == [(EventName.CONNECTION_CLOSED, ADDRESS, None)]

    def test_close_before_open(self, connection, transports, recorder):
        """A transport that never opens goes straight to CLOSED"""
        transports.last.drop()
        assert connection.state is ConnectionState.CLOSED
        assert recorder.names() == [EventName.CONNECTION_CLOSED]

    def test_close_reported_once(self, connection, transports, recorder):
        transports.last.drop()
        transports.last.drop()
        assert len(recorder.of(EventName.CONNECTION_CLOSED)) == 1

    def test_open_after_close_ignored(self, connection, transports, recorder):
        """CLOSED is terminal"""
        transports.last.drop()
        transports.last.open()
        assert connection.state is ConnectionState.CLOSED
        assert recorder.of(EventName.CONNECTION_OPENED) == []

    def test_close_delegates_to_transport(self, connection, transports):
        connection.close()
        assert transports.last.close_requested
        # State only changes once the transport reports back
        assert connection.state is ConnectionState.CONNECTING

    def test_invalid_address(self, bus, transports):
        with pytest.raises(InvalidArgument):
            Connection("", bus=bus, transport_factory=transports)


class TestSend:
    """Test queueing and transmission"""

    def test_queue_while_connecting(self, connection, transports, recorder):
        """Sending before open queues without error or transmission"""
        request = RpcRequest.create("ping")
        connection.send(request)

        assert transports.last.sent == []
        assert connection.pending_requests() == [request]
        assert recorder.events == []

    def test_flush_in_order_after_opened_event(self, connection, transports, recorder):
        """Queued requests go out FIFO right after connection-opened"""
        requests = [RpcRequest.create(f"m{index}") for index in range(4)]
        for request in requests:
            connection.send(request)

        transports.last.open()
        later = RpcRequest.create("later")
        connection.send(later)

        assert sent_methods(transports.last) == ["m0", "m1", "m2", "m3", "later"]
        assert recorder.names() == [EventName.CONNECTION_OPENED] + [EventName.REQUEST_SENT] * 5
        assert [event[2] for event in recorder.of(EventName.REQUEST_SENT)] == requests + [later]
        assert connection.pending_requests() == []

    def test_send_when_open(self, connection, transports, recorder):
        transports.last.open()
        request = RpcRequest.create("add", [1, 2], id=55)
        connection.send(request)

        assert transports.last.sent == ['{"jsonrpc":"2.0","method":"add","params":[1,2],"id":55}']
        assert recorder.of(EventName.REQUEST_SENT) == [(EventName.REQUEST_SENT, connection, request)]

    def test_send_from_open_listener_goes_after_queue(self, bus, connection, transports):
        """A request sent while handling connection-opened follows the queued ones"""
        connection.send(RpcRequest.create("queued"))
        bus.subscribe(
            EventName.CONNECTION_OPENED,
            lambda name, source, data: connection.send(RpcRequest.create("from-listener"))
        )

        transports.last.open()
        assert sent_methods(transports.last) == ["queued", "from-listener"]

    def test_send_after_close_queues(self, connection, transports):
        transports.last.open()
        transports.last.drop()
        request = RpcRequest.create("ping")
        connection.send(request)

        assert transports.last.sent == []
        assert connection.pending_requests() == [request]

    def test_refused_frame_requeued(self, connection, transports, recorder):
        """A transport refusing a frame keeps the request queued and reports the error"""
        transports.last.open()
        transports.last.fail_sends = True
        request = RpcRequest.create("ping")
        connection.send(request)

        assert connection.pending_requests() == [request]
        errors = recorder.of(EventName.TRANSPORT_ERROR)
        assert len(errors) == 1
        assert isinstance(errors[0][2], TransportError)
        assert recorder.of(EventName.REQUEST_SENT) == []

    def test_queue_retried_after_transport_recovers(self, connection, transports, recorder):
        """Requests stuck behind a refused frame go out, in order, on the next send"""
        transports.last.open()
        transports.last.fail_sends = True
        connection.send(RpcRequest.create("first"))

        transports.last.fail_sends = False
        connection.send(RpcRequest.create("second"))
        connection.send(RpcRequest.create("third"))

        assert sent_methods(transports.last) == ["first", "second", "third"]
        assert connection.pending_requests() == []
        assert [event[2].method for event in recorder.of(EventName.REQUEST_SENT)] == ["first", "second", "third"]

    def test_send_queues_behind_still_refused_frame(self, connection, transports, recorder):
        transports.last.open()
        transports.last.fail_sends = True
        connection.send(RpcRequest.create("first"))
        connection.send(RpcRequest.create("second"))

        assert transports.last.sent == []
        assert [request.method for request in connection.pending_requests()] == ["first", "second"]
        # One refusal per send: the retried head, never the request behind it
        assert len(recorder.of(EventName.TRANSPORT_ERROR)) == 2

        transports.last.fail_sends = False
        connection.send(RpcRequest.create("third"))
        assert sent_methods(transports.last) == ["first", "second", "third"]

    def test_initial_pending_sent_first(self, bus, transports):
        carried = [RpcRequest.create("old1"), RpcRequest.create("old2")]
        connection = Connection(ADDRESS, bus=bus, transport_factory=transports, pending=carried)
        connection.send(RpcRequest.create("new"))

        transports.last.open()
        assert sent_methods(transports.last) == ["old1", "old2", "new"]

    def test_drain_pending(self, connection):
        requests = [RpcRequest.create("a"), RpcRequest.create("b")]
        for request in requests:
            connection.send(request)

        assert connection.drain_pending() == requests
        assert connection.pending_requests() == []

    def test_invalid_request(self, connection):
        with pytest.raises(InvalidArgument):
            connection.send({"method": "ping"})


class TestInbound:
    """Test decoding and publishing of inbound frames"""

    def test_response_received(self, connection, transports, recorder):
        transports.last.open()
        transports.last.deliver('{"jsonrpc":"2.0","result":{"data":12.2},"id":101}')

        events = recorder.of(EventName.RESPONSE_RECEIVED)
        assert len(events) == 1
        _, source, response = events[0]
        assert source == ADDRESS
        assert isinstance(response, RpcResponse)
        assert response.result == {"data": 12.2}
        assert response.id == 101

    def test_malformed_frame_published_not_raised(self, connection, transports, recorder):
        """A bad frame becomes a response-error event and the pipeline keeps going"""
        transports.last.open()
        transports.last.deliver("not json")
        transports.last.deliver('{"jsonrpc":"2.0","result":1,"id":2}')

        errors = recorder.of(EventName.RESPONSE_ERROR)
        assert len(errors) == 1
        assert errors[0][1] == ADDRESS
        assert isinstance(errors[0][2], MalformedResponse)
        assert len(recorder.of(EventName.RESPONSE_RECEIVED)) == 1

    def test_error_response_is_data(self, connection, transports, recorder):
        transports.last.open()
        transports.last.deliver('{"jsonrpc":"2.0","error":{"code":-32601,"message":"Method not found"},"id":3}')

        _, _, response = recorder.of(EventName.RESPONSE_RECEIVED)[0]
        assert response.is_error
        assert response.error.code == -32601
        assert recorder.of(EventName.RESPONSE_ERROR) == []

    def test_failing_listener_does_not_reach_transport(self, bus, connection, transports):
        def broken(name, source, data):
            raise RuntimeError("listener bug")

        received = []
        bus.subscribe(EventName.RESPONSE_RECEIVED, broken)
        bus.subscribe(EventName.RESPONSE_RECEIVED, lambda name, source, data: received.append(data))
        transports.last.open()
        transports.last.deliver('{"jsonrpc":"2.0","result":1,"id":1}')

        assert [response.id for response in received] == [1]
        assert connection.is_open()

    def test_deeply_nested_frame_published_not_raised(self, connection, transports, recorder):
        """A frame too deep to decode is a response-error, not an exception"""
        transports.last.open()
        transports.last.deliver("[" * 200000)
        transports.last.deliver('{"jsonrpc":"2.0","result":1,"id":2}')

        errors = recorder.of(EventName.RESPONSE_ERROR)
        assert len(errors) == 1
        assert isinstance(errors[0][2], MalformedResponse)
        assert [event[2].id for event in recorder.of(EventName.RESPONSE_RECEIVED)] == [2]


class TestTransportErrors:
    """Test transport error notifications"""

    def test_error_published_state_unchanged(self, connection, transports, recorder):
        request = RpcRequest.create("ping")
        connection.send(request)
        cause = TransportError("handshake failed")

        transports.last.fail(cause)

        assert recorder.of(EventName.TRANSPORT_ERROR) == [(EventName.TRANSPORT_ERROR, ADDRESS, cause)]
        assert connection.state is ConnectionState.CONNECTING
        assert connection.pending_requests() == [request]

    def test_error_while_open(self, connection, transports):
        transports.last.open()
        transports.last.fail(OSError("reset"))
        assert connection.is_open()

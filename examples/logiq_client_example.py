#!/usr/bin/env python
"""
LogIQ Client Example

Demonstrates sending JSON-RPC requests to a LogIQ appliance, listening to
connection events on the EventBus and waiting for responses through the
PendingRequests table.

Settings are read from the LOGIQ_* environment variables (see ClientConfig).
"""

import logging
import sys
from concurrent.futures import wait

from logiq_client import ClientConfig, EventBus, EventName, RpcRequest

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def log_event(event_name, source, data):
    """Print every event the client publishes"""
    logger.info(f"[{event_name}] {source}: {data if data is not None else ''}")


def main():
    config = ClientConfig.from_env()
    logger.info(f"Client configuration: {config.to_dict()}")
    config.setup_telemetry()

    bus = EventBus.get_instance()
    for event_name in (EventName.CONNECTION_OPENED, EventName.CONNECTION_CLOSED,
                       EventName.RESPONSE_ERROR, EventName.TRANSPORT_ERROR):
        bus.subscribe(event_name, log_event)

    server = config.create_server()
    pending = config.create_pending_requests()

    requests = [RpcRequest.create("login", [config.username or "", config.password or ""])]
    requests.append(RpcRequest.create("ping"))
    futures = [pending.call(server, request) for request in requests]

    done, not_done = wait(futures, timeout=(config.request_timeout or 30.0) + 1)
    exit_code = 0
    for request, future in zip(requests, futures):
        if future not in done:
            continue
        exception = future.exception()
        if exception is not None:
            logger.error(f"Request {request.id} ({request.method}) failed: {exception}")
            exit_code = 1
            continue

        response = future.result()
        if response.is_error:
            logger.error(f"Request {request.id} ({request.method}) returned error {response.error}")
            exit_code = 1
        else:
            logger.info(f"Response to {request.method}:\n{response.to_pretty()}")

    if not_done:
        exit_code = 1

    pending.close()
    server.close()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())

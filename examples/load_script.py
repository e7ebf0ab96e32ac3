#!/usr/bin/env python3
"""
SMPP Load Script Example

Connects one session per virtual user through the blocking bridge, sends a batch
of messages and closes. Point it at an SMSC with the SMPP_HOST / SMPP_PORT /
SMPP_SYSTEM_ID / SMPP_PASSWORD environment variables.
"""

import logging
import os
import threading
import time

from smppdriver import SMPPException, bridge, setup_logging

logger = logging.getLogger(__name__)

MESSAGES_PER_USER = 10
VIRTUAL_USERS = 4


def virtual_user(index: int, results: list) -> None:
    options = {
        'host': os.environ.get('SMPP_HOST', 'localhost'),
        'port': int(os.environ.get('SMPP_PORT', '2775')),
        'system_id': os.environ.get('SMPP_SYSTEM_ID', 'test'),
        'password': os.environ.get('SMPP_PASSWORD', 'secret'),
        'bind': 'transceiver',
    }
    try:
        session = bridge.connect(options)
    except SMPPException as e:
        logger.error(f'VU {index}: connect failed: {e}')
        return

    try:
        for i in range(MESSAGES_PER_USER):
            try:
                message_id = session.sendSMS('TEST', '+491701234567', f'Hello SMPP {i}')
                results.append(message_id)
                logger.info(f'VU {index}: message {i} accepted as {message_id}')
            except SMPPException as e:
                logger.warning(f'VU {index}: message {i} failed: {e}')
    finally:
        session.close()


def main() -> None:
    setup_logging(logging.INFO)
    results: list = []
    started = time.monotonic()
    threads = [
        threading.Thread(target=virtual_user, args=(i, results), name=f'vu-{i}')
        for i in range(VIRTUAL_USERS)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    elapsed = time.monotonic() - started
    logger.info(f'{len(results)} messages accepted in {elapsed:.2f}s')


if __name__ == '__main__':
    main()

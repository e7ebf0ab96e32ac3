#!/usr/bin/env python3
"""
SMPP Client Example

Connects to an SMSC with the async client, sends a few messages requesting
delivery receipts and prints receipts as they arrive. Stop with Ctrl+C.
"""

import asyncio
import logging
import os

from smppdriver import (
    DeliverSm,
    LoggingConfig,
    RegisteredDelivery,
    SMPPClient,
    SMPPException,
    create_client_config,
    setup_logging,
)

logger = logging.getLogger(__name__)


def handle_deliver_sm(pdu: DeliverSm) -> None:
    """Log mobile-originated messages and delivery receipts"""
    if pdu.is_delivery_receipt():
        receipt = pdu.parse_delivery_receipt()
        logger.info(f"Receipt for {receipt.get('id')}: {receipt.get('stat')}")
    else:
        logger.info(f'Message from {pdu.source_addr}: {pdu.get_message_text()}')


async def main() -> None:
    config = create_client_config(
        host=os.environ.get('SMPP_HOST', 'localhost'),
        port=int(os.environ.get('SMPP_PORT', '2775')),
        system_id=os.environ.get('SMPP_SYSTEM_ID', 'test'),
        password=os.environ.get('SMPP_PASSWORD', 'secret'),
        system_type='CLIENT',
        registered_delivery=RegisteredDelivery.SUCCESS_FAILURE,
    )

    async with SMPPClient(config, deliver_handler=handle_deliver_sm) as client:
        for i in range(3):
            try:
                message_id = await client.send_sms('TEST', '+491701234567', f'Hello SMPP {i}')
                logger.info(f'Message {i} accepted as {message_id}')
            except SMPPException as e:
                logger.error(f'Message {i} failed: {e}')

        logger.info(f'Stats: {client.stats}')
        # Wait for receipts until interrupted or the session drops
        await client.session.wait_closed()


if __name__ == '__main__':
    setup_logging(LoggingConfig(level='INFO'))
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info('Interrupted')

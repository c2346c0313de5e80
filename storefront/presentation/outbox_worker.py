import asyncio
import logging

from storefront.application.process_outbox import ProcessOutboxEventsUseCase
from storefront.config import settings
from storefront.database import create_engine, create_session_factory
from storefront.infrastructure.kafka_producer import KafkaProducerClient
from storefront.infrastructure.unit_of_work import UnitOfWork

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

POLL_INTERVAL = 3
ERROR_BACKOFF = 10


async def outbox_worker():
    """Publishes order.paid events from the outbox to Kafka"""
    logger.info("Outbox worker started")

    engine = create_engine(settings.DATABASE_URL)
    uow = UnitOfWork(create_session_factory(engine))
    producer = KafkaProducerClient(settings.KAFKA_BOOTSTRAP_SERVERS, settings.ORDER_EVENTS_TOPIC)
    await producer.start()

    use_case = ProcessOutboxEventsUseCase(unit_of_work=uow, publisher=producer)
    try:
        while True:
            try:
                published = await use_case(limit=10)
                if published:
                    logger.info(f"Published {published} outbox events")
                await asyncio.sleep(POLL_INTERVAL)
            except Exception as e:
                logger.error(f"Error in outbox worker: {e}", exc_info=True)
                await asyncio.sleep(ERROR_BACKOFF)
    finally:
        await producer.stop()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(outbox_worker())

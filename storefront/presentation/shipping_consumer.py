import asyncio
import logging

from storefront.application.process_shipping_event import ProcessShippingEventUseCase
from storefront.config import settings
from storefront.database import create_engine, create_session_factory
from storefront.infrastructure.kafka_consumer import KafkaConsumerClient
from storefront.infrastructure.unit_of_work import UnitOfWork

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def shipping_consumer():
    """Applies order.shipped / order.delivered events from the carrier side"""
    logger.info("Shipping consumer started")

    engine = create_engine(settings.DATABASE_URL)
    use_case = ProcessShippingEventUseCase(UnitOfWork(create_session_factory(engine)))

    consumer = KafkaConsumerClient(settings.KAFKA_BOOTSTRAP_SERVERS, settings.SHIPMENT_EVENTS_TOPIC)
    await consumer.start()
    try:
        await consumer.consume(use_case)
    finally:
        await consumer.stop()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(shipping_consumer())

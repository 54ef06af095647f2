"""
LinkReport - Account Linking and Aggregation Report

This application links bank accounts through an aggregation platform's
consent flow, receives the consent redirect on a local callback server and
answers it with an HTML report of the shared accounts and transactions.
"""

import asyncio
import logging
from src.auth.callback_server import create_callback_app, start_callback_server
from src.auth.consent_manager import ConsentManager
from src.auth.identity_loader import IdentityLoader
from src.aggregator.data_aggregator import DataAggregator
from src.dashboard.html_display import HtmlDisplay
from src.data.sandbox_client import SandboxTokenClient
from config.settings import load_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


async def main():
    """Main application entry point."""
    runner = None
    try:
        logger.info("Starting LinkReport application...")

        # Load configuration
        config = load_config()
        logging.getLogger().setLevel(config.log_level)

        # Initialize components
        client = SandboxTokenClient(config.keys_dir)
        member = await IdentityLoader(config.keys_dir, client, config.redirect_url).load_or_create()
        consent_manager = ConsentManager(client, config.redirect_url)

        # The listener has to be up before the user can be sent to the consent page
        app = create_callback_app(
            config,
            consent_manager,
            member,
            DataAggregator(config.transactions_page_size),
            HtmlDisplay(),
        )
        runner = await start_callback_server(app)

        consent_url = await consent_manager.generate_consent_url(member)
        if config.open_browser:
            consent_manager.open_in_browser(consent_url)
        else:
            print(f"Open this link: {consent_url}")

        logger.info("Waiting for the consent callback (Ctrl-C to stop)...")
        await asyncio.Event().wait()

    except Exception as e:
        logger.error(f"Application error: {e}")
        raise
    finally:
        if runner is not None:
            await runner.cleanup()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("LinkReport stopped")


if __name__ == "__main__":
    run()

"""Local HTTP callback server that turns the consent redirect into a report."""

import logging
import ssl
from typing import Optional

from aiohttp import web
from authlib.integrations.base_client import OAuthError

from config.settings import AppConfig
from .consent_manager import ConsentManager
from ..aggregator.data_aggregator import DataAggregator
from ..dashboard.html_display import HtmlDisplay
from ..data.token_client import Member, TokenClientError

logger = logging.getLogger(__name__)

REQUEST_ID_PARAM = 'request-id'


async def _handle_callback(request: web.Request) -> web.Response:
    display: HtmlDisplay = request.app['display']
    request_id = request.query.get(REQUEST_ID_PARAM)
    if not request_id:
        logger.warning(f"Callback without {REQUEST_ID_PARAM} parameter: {request.query_string}")
        html = display.render_error('Missing request id', f"The callback URL has no '{REQUEST_ID_PARAM}' parameter.")
        return web.Response(status=400, text=html, content_type='text/html')

    logger.info(f"Callback received for request {request_id}")
    consent_manager: ConsentManager = request.app['consent_manager']
    aggregator: DataAggregator = request.app['aggregator']
    try:
        representable = await consent_manager.resolve(request.app['member'], request_id)
        summaries = await aggregator.aggregate(representable)
    except OAuthError as e:
        logger.error(f"Consent resolution failed for {request_id}: {e}")
        html = display.render_error('Consent failed', e.description or str(e.error))
        return web.Response(status=502, text=html, content_type='text/html')
    except TokenClientError as e:
        logger.error(f"Aggregation failed for {request_id}: {e}")
        html = display.render_error('Aggregation failed', str(e))
        return web.Response(status=502, text=html, content_type='text/html')

    return web.Response(status=200, text=display.render(summaries), content_type='text/html')


async def _handle_root(request: web.Request) -> web.Response:
    # Friendly page to avoid 404 confusion when users navigate to '/'
    config: AppConfig = request.app['config']
    html = (
        "<html><head><title>Callback Server</title></head><body>"
        "<h2>Callback Server Running</h2>"
        f"<p>This local server only handles the <code>{config.callback_path}</code> path used by the consent redirect.</p>"
        "<p>If you see this page, the aggregation platform hasn't redirected back yet. Please continue the consent flow in your browser.</p>"
        "</body></html>"
    )
    return web.Response(text=html, content_type='text/html')


async def _handle_favicon(_: web.Request) -> web.Response:
    return web.Response(status=204)


def create_callback_app(
    config: AppConfig,
    consent_manager: ConsentManager,
    member: Member,
    aggregator: Optional[DataAggregator] = None,
    display: Optional[HtmlDisplay] = None,
) -> web.Application:
    """Build the callback application; handlers read their context from the app."""
    app = web.Application()
    app.add_routes([
        web.get('/', _handle_root),
        web.get('/favicon.ico', _handle_favicon),
        web.get(config.callback_path, _handle_callback),
    ])
    app['config'] = config
    app['consent_manager'] = consent_manager
    app['member'] = member
    app['aggregator'] = aggregator or DataAggregator(config.transactions_page_size)
    app['display'] = display or HtmlDisplay()
    return app


async def start_callback_server(app: web.Application) -> web.AppRunner:
    """Start listening on the configured host and port.

    The listener keeps serving until the returned runner is cleaned up.
    """
    config: AppConfig = app['config']
    ssl_ctx = None
    if config.use_tls:
        ssl_ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        ssl_ctx.load_cert_chain(certfile=config.tls_cert_path, keyfile=config.tls_key_path)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host=config.host, port=config.port, ssl_context=ssl_ctx)
    await site.start()
    logger.info(f"Callback server listening on {config.redirect_url}")
    return runner

"""Streamlit entrypoint for the AgentCost dashboard."""

from __future__ import annotations

import logging

import streamlit as st
from dotenv import load_dotenv

from agentcost_dashboard.config import ROUTE_LANDING
from agentcost_dashboard.routing import guard_route
from agentcost_dashboard.ui import apply_app_styles, get_context, navigate, register_pages, render_sidebar
from agentcost_dashboard.views import PAGES, PageRoute, guarded

logger = logging.getLogger(__name__)


def build_page(page: PageRoute) -> st.Page:
    if page.route == ROUTE_LANDING:
        return st.Page(guarded(page.render), title=page.title, default=True)
    return st.Page(guarded(page.render), title=page.title, url_path=page.url_path)


def main() -> None:
    load_dotenv()

    st.set_page_config(page_title="AgentCost", layout="wide")
    apply_app_styles()

    context = get_context()
    context.sync()

    pages = {page.route: build_page(page) for page in PAGES}
    register_pages(pages)
    routes_by_url = {page.url_path: route for route, page in pages.items()}

    current = st.navigation(list(pages.values()), position="hidden")
    route = routes_by_url.get(current.url_path, ROUTE_LANDING)

    redirect = guard_route(context.session.state, route)
    if redirect is not None:
        logger.info("Redirecting %s to %s", route, redirect)
        navigate(redirect)

    if context.session.is_authenticated:
        render_sidebar(context)

    current.run()


if __name__ == "__main__":
    main()

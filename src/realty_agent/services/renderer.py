"""Headless browser rendering for the rendered-page extraction tier."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from realty_agent.errors import RenderError


logger = logging.getLogger(__name__)

SCROLL_STEP_PX = 100
SCROLL_PAUSE_SECS = 0.1
# Caps lazy-load scrolling on pages that keep growing.
MAX_SCROLL_STEPS = 300

AfterLoad = Callable[[Any], None]


@dataclass
class RenderOptions:
    navigation_timeout: float = 60.0
    headless: bool = True
    after_load: Optional[AfterLoad] = None


@dataclass
class RenderedPage:
    url: str
    text: str


class Renderer:
    def render(self, url: str, options: RenderOptions) -> RenderedPage:
        raise NotImplementedError


def scroll_to_bottom(driver: Any, step: int = SCROLL_STEP_PX, max_steps: int = MAX_SCROLL_STEPS) -> int:
    """Scroll in small steps until the page height stops outrunning us.

    Returns the number of steps taken.
    """
    scrolled = 0
    for n in range(1, max_steps + 1):
        height = driver.execute_script("return document.body.scrollHeight") or 0
        viewport = driver.execute_script("return window.innerHeight") or 0
        driver.execute_script("window.scrollBy(0, arguments[0]);", step)
        scrolled += step
        if scrolled >= height - viewport:
            return n
        time.sleep(SCROLL_PAUSE_SECS)
    return max_steps


def lazy_load_hook(selector: str, timeout: float = 10.0) -> AfterLoad:
    """Build an ``after_load`` hook: scroll for lazy content, then wait for ``selector``.

    The wait is soft; on timeout the page is captured as it is.
    """

    def _hook(driver: Any) -> None:
        from selenium.common.exceptions import TimeoutException  # type: ignore[import-not-found]
        from selenium.webdriver.common.by import By  # type: ignore[import-not-found]
        from selenium.webdriver.support import expected_conditions as EC  # type: ignore[import-not-found]
        from selenium.webdriver.support.ui import WebDriverWait  # type: ignore[import-not-found]

        scroll_to_bottom(driver)
        try:
            WebDriverWait(driver, timeout).until(
                EC.presence_of_element_located((By.CSS_SELECTOR, selector))
            )
        except TimeoutException:
            logger.info("Selector %s not found, continuing with available content", selector)

    return _hook


class SeleniumRenderer(Renderer):
    """Render pages in headless Chrome and capture their visible text."""

    def render(self, url: str, options: RenderOptions) -> RenderedPage:
        from selenium import webdriver  # type: ignore[import-not-found]
        from selenium.common.exceptions import WebDriverException  # type: ignore[import-not-found]
        from selenium.webdriver.chrome.options import Options  # type: ignore[import-not-found]

        chrome = Options()
        if options.headless:
            chrome.add_argument("--headless=new")
        for arg in (
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-accelerated-2d-canvas",
            "--disable-gpu",
            "--window-size=1920,1080",
        ):
            chrome.add_argument(arg)

        try:
            driver = webdriver.Chrome(options=chrome)
        except WebDriverException as e:
            raise RenderError(f"Could not start browser: {e.msg or e}") from e
        try:
            driver.set_page_load_timeout(options.navigation_timeout)
            driver.get(url)
            if options.after_load:
                options.after_load(driver)
            text = driver.execute_script("return document.body ? document.body.innerText : '';")
        except WebDriverException as e:
            raise RenderError(f"Rendering {url} failed: {e.msg or e}") from e
        finally:
            driver.quit()
        if not text or not str(text).strip():
            raise RenderError("No content was loaded from the page")
        return RenderedPage(url=url, text=str(text))

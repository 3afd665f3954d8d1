"""
Fetching readable text from job posting pages.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import requests
from bs4 import BeautifulSoup, Comment
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By

LOGGER = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MIN_USEFUL_CHARS = 200
MAX_PAGE_CHARS = 20000


def html_to_text(html: str) -> str:
    """
    Strip markup from an HTML document, keeping visible text only.

    Args:
        html: Raw HTML source.

    Returns:
        Visible text, one block per line.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "svg", "head", "template"]):
        tag.decompose()
    for comment in soup.find_all(string=lambda node: isinstance(node, Comment)):
        comment.extract()
    return soup.get_text("\n", strip=True)


def _create_driver(timeout: float) -> webdriver.Chrome:
    """
    Create and configure a headless Chrome WebDriver.

    Returns:
        Configured Chrome WebDriver instance.
    """
    chrome_options = Options()
    chrome_options.add_argument("--headless")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--disable-gpu")
    chrome_options.add_argument("--window-size=1920,1080")
    chrome_options.add_argument(f"user-agent={USER_AGENT}")

    try:
        driver = webdriver.Chrome(options=chrome_options)
        driver.set_page_load_timeout(timeout)
        return driver
    except WebDriverException as exc:
        LOGGER.error("Failed to initialize Chrome WebDriver: %s", exc)
        raise


def _fetch_with_browser(url: str, timeout: float) -> str:
    """Render the page in headless Chrome and return the body text."""
    driver: Optional[webdriver.Chrome] = None
    try:
        driver = _create_driver(timeout)
        LOGGER.debug("Navigating to %s", url)
        driver.get(url)
        body = driver.find_element(By.TAG_NAME, "body")
        return re.sub(r"[ \t]+", " ", body.text).strip()
    finally:
        if driver:
            try:
                driver.quit()
            except WebDriverException:
                LOGGER.debug("WebDriver quit failed for %s", url)


def fetch_job_page_text(url: str, timeout: float = 30.0, use_browser: bool = False) -> str:
    """
    Fetch the visible text of a job posting.

    A plain HTTP request is tried first; when it yields too little text and
    ``use_browser`` is set, the page is rendered with Selenium.

    Args:
        url: Job posting URL.
        timeout: Seconds to wait for the page.
        use_browser: Allow the headless Chrome fallback for script-heavy pages.

    Returns:
        Page text, truncated to a size suitable for a prompt.

    Raises:
        requests.RequestException: The HTTP request failed.
    """
    response = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    response.raise_for_status()
    text = html_to_text(response.text)
    LOGGER.debug("Fetched %d chars of text from %s", len(text), url)

    if len(text) < MIN_USEFUL_CHARS and use_browser:
        LOGGER.info("Page text too short (%d chars); rendering %s with Chrome", len(text), url)
        try:
            rendered = _fetch_with_browser(url, timeout)
        except WebDriverException as exc:
            LOGGER.warning("Browser fallback failed for %s: %s", url, str(exc)[:200])
        else:
            if len(rendered) > len(text):
                text = rendered

    return text[:MAX_PAGE_CHARS]

import logging

from bs4 import BeautifulSoup
from curl_cffi import CurlError
from curl_cffi.requests import AsyncSession, RequestsError

from ..config import AppConfig
from ..errors import FetchError, NoReviewsFoundError
from ..models import RawPage

logger = logging.getLogger("ReviewScraper")

# Fixed desktop-Chrome identity; some stores serve an empty shell to unknown clients.
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
}


class PageFetcher:
    """
    Downloads product pages. One instance per process: the underlying
    AsyncSession pools connections and is safe to share between requests.
    """

    def __init__(self, config: AppConfig, session: AsyncSession | None = None):
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def open(self) -> None:
        if self._session is None:
            self._session = AsyncSession(
                headers=BROWSER_HEADERS,
                timeout=self.config.fetch_timeout_seconds,
                allow_redirects=True,
                max_redirects=self.config.max_redirects,
            )

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> RawPage:
        """Single GET, no retries. Anything but a 2xx becomes a FetchError."""
        await self.open()
        logger.info(f"Fetching {url}")
        try:
            resp = await self._session.get(url, headers=BROWSER_HEADERS)
        except (RequestsError, CurlError) as e:
            logger.warning(f"Network error on {url}: {e}")
            raise FetchError(f"Failed to fetch the product page: {e}") from e
        finally:
            # Pages must not see cookies set while serving another request
            self._session.cookies.clear()

        if not 200 <= resp.status_code < 300:
            reason = getattr(resp, "reason", "") or ""
            logger.warning(f"{url} answered {resp.status_code} {reason}".rstrip())
            raise FetchError(
                f"Failed to fetch the product page: HTTP {resp.status_code} {reason}".rstrip(),
                status_code=resp.status_code,
            )

        return RawPage(url=url, html=resp.text, status_code=resp.status_code)


def extract_reviews(html: str, selector: str) -> list[str]:
    """
    Returns the trimmed text of every node matching `selector`, in document
    order, skipping nodes with no text. Raises NoReviewsFoundError when
    nothing usable is left.
    """
    soup = BeautifulSoup(html, "html.parser")
    review_els = soup.select(selector)
    logger.info(f"Found {len(review_els)} review elements using selector: {selector}")

    reviews = []
    for el in review_els:
        text = el.get_text().strip()
        if text:
            reviews.append(text)

    if not reviews:
        raise NoReviewsFoundError()
    return reviews

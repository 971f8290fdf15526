"""Configured theater chains scraped for bonus information."""

from moviebonus.scrapers.models import TheaterConfig

# Ordered by priority: Vieshow > Showtimes > Ambassador > Miramar > in89
THEATER_CONFIGS: list[TheaterConfig] = [
    TheaterConfig(
        id="vieshow",
        name="威秀影城",
        event_urls=["https://www.vscinemas.com.tw/vsweb/film/events.aspx"],
        now_showing_urls=["https://www.vscinemas.com.tw/vsweb/film/index.aspx"],
        priority=1,
    ),
    TheaterConfig(
        id="showtimes",
        name="秀泰影城",
        event_urls=["https://www.showtimes.com.tw/events"],
        now_showing_urls=["https://www.showtimes.com.tw/"],
        priority=2,
    ),
    TheaterConfig(
        id="ambassador",
        name="國賓影城",
        event_urls=["https://www.ambassador.com.tw/events"],
        now_showing_urls=["https://www.ambassador.com.tw/"],
        priority=3,
    ),
    TheaterConfig(
        id="miramar",
        name="美麗華影城",
        event_urls=["https://www.miramarcinemas.tw/"],
        now_showing_urls=["https://www.miramarcinemas.tw/"],
        priority=4,
    ),
    TheaterConfig(
        id="in89",
        name="in89 豪華數位影城",
        event_urls=["https://www.in89.com.tw/"],
        now_showing_urls=["https://www.in89.com.tw/"],
        priority=5,
    ),
]

# Mobile-basic Facebook fan pages, which render without JavaScript
FACEBOOK_PAGES: dict[str, str] = {
    "vieshow": "https://mbasic.facebook.com/vscinemas",
    "showtimes": "https://mbasic.facebook.com/showtimescinemas",
    "ambassador": "https://mbasic.facebook.com/ambassadortheaters",
    "miramar": "https://mbasic.facebook.com/maboroshi.miramar",
    "in89": "https://mbasic.facebook.com/in89cinemas",
}


def get_theater_config(theater_id: str) -> TheaterConfig | None:
    """Look up a configured theater by id."""
    for config in THEATER_CONFIGS:
        if config.id == theater_id:
            return config
    return None


def sorted_configs(configs: list[TheaterConfig] | None = None) -> list[TheaterConfig]:
    """Return configs in scrape order (ascending priority, stable)."""
    return sorted(configs if configs is not None else THEATER_CONFIGS, key=lambda c: c.priority)

"""Tests for bonus-relevant text extraction."""

from moviebonus.scrapers.extractor import DEFAULT_MATCHERS, ContentExtractor, RelevanceMatcher

EVENT_TEXT = "入場特典：鬼滅之刃限定海報，每廳限量一百份，送完為止"
NEWS_TEXT = "最新消息：沙丘第二部 IMAX 場次加映，購票即贈角色色紙"


def page(body: str) -> str:
    return f"<html><head><title>影城</title><style>.x {{}}</style></head><body>{body}</body></html>"


class TestContentExtractor:
    def test_keeps_relevant_blocks_and_drops_noise(self) -> None:
        html = page(
            "<nav>首頁 | 電影 | 會員中心 | 影城介紹 | 聯絡我們</nav>"
            f'<div class="event-item">{EVENT_TEXT}</div>'
            "<p>與特典無關的段落文字，不應該出現在結果之中喔</p>"
            "<script>var tracking = 'should never appear anywhere';</script>"
            "<footer>版權所有 © 威秀影城 保留一切權利與責任</footer>"
        )

        text = ContentExtractor().extract(html)

        assert EVENT_TEXT in text
        assert "會員中心" not in text
        assert "tracking" not in text
        assert "版權所有" not in text
        assert "無關的段落" not in text

    def test_blocks_follow_matcher_rank(self) -> None:
        html = page(f'<div class="news-box">{NEWS_TEXT}</div><div class="event-box">{EVENT_TEXT}</div>')

        text = ContentExtractor().extract(html)

        assert text == f"{EVENT_TEXT}\n\n{NEWS_TEXT}"

    def test_same_element_matched_twice_appears_once(self) -> None:
        html = page(f'<div class="event-list">{EVENT_TEXT}</div>')
        assert ContentExtractor().extract(html) == EVENT_TEXT

    def test_short_blocks_are_ignored(self) -> None:
        html = page(f'<div class="event">短</div><article>{NEWS_TEXT}</article>')
        assert ContentExtractor().extract(html) == NEWS_TEXT

    def test_falls_back_to_body_text(self) -> None:
        html = page(f"<div><p>{NEWS_TEXT}</p></div><script>ignored()</script>")

        text = ContentExtractor().extract(html)

        assert text == NEWS_TEXT

    def test_output_is_bounded(self) -> None:
        html = page(f'<div class="event">{EVENT_TEXT * 10}</div>')
        assert len(ContentExtractor(max_length=30).extract(html)) == 30

    def test_register_custom_matcher(self) -> None:
        extractor = ContentExtractor()
        extractor.register(RelevanceMatcher("promo", ".promo", rank=5))
        html = page(f'<div class="news">{NEWS_TEXT}</div><div class="promo">{EVENT_TEXT}</div>')

        assert extractor.extract(html).startswith(EVENT_TEXT)
        assert extractor.matchers[0].name == "promo"

    def test_custom_matchers_replace_defaults(self) -> None:
        extractor = ContentExtractor(matchers=[RelevanceMatcher("promo", ".promo")])
        html = page(f'<div class="event">{NEWS_TEXT}</div><div class="promo">{EVENT_TEXT}</div>')

        assert extractor.extract(html) == EVENT_TEXT

    def test_default_matchers_are_ranked(self) -> None:
        ranks = [m.rank for m in DEFAULT_MATCHERS]
        assert ranks == sorted(ranks)
        assert [m.name for m in ContentExtractor().matchers] == [m.name for m in DEFAULT_MATCHERS]

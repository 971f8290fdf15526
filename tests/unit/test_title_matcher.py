"""Unit tests for title similarity, matching and bonus merging."""

import pytest

from moviebonus.models.catalog import Bonus, CatalogMovie, TheaterBonus
from moviebonus.scrapers.models import ScrapedBonus
from moviebonus.services.title_matcher import (
    TitleMatcher,
    find_best_match,
    mark_rereleases,
    merge_scraped_bonuses,
    resolve_theater_id,
    similarity,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def make_movie(
    id: str = "tmdb-1",
    title: str = "鬼滅之刃",
    title_en: str | None = None,
    **kwargs,
) -> CatalogMovie:
    return CatalogMovie(id=id, title=title, title_en=title_en, **kwargs)


def make_bonus(
    movie_title: str = "鬼滅之刃",
    theater_name: str = "威秀影城",
    week: int = 1,
    description: str = "限定海報",
    quantity: str = "每廳限量100份",
) -> ScrapedBonus:
    return ScrapedBonus(
        movie_title=movie_title,
        theater_name=theater_name,
        week=week,
        description=description,
        quantity=quantity,
        source_url="https://www.vscinemas.com.tw/vsweb/theater/activity.aspx",
    )


# ---------------------------------------------------------------------------
# similarity
# ---------------------------------------------------------------------------


class TestSimilarity:
    def test_identical_strings(self) -> None:
        assert similarity("鬼滅之刃", "鬼滅之刃") == 1.0

    def test_identical_after_normalization(self) -> None:
        assert similarity("ＤＵＮＥ", "dune") == 1.0

    def test_empty_string_scores_zero(self) -> None:
        assert similarity("", "Dune") == 0.0
        assert similarity("Dune", "") == 0.0

    def test_punctuation_only_scores_zero(self) -> None:
        assert similarity("!!!", "???") == 0.0

    def test_containment_ratio(self) -> None:
        assert similarity("鬼滅之刃：無限列車篇", "鬼滅之刃") == pytest.approx(4 / 9)

    def test_unrelated_titles_score_low(self) -> None:
        assert similarity("Dune", "Oppenheimer") < 0.5

    def test_lcs_ratio(self) -> None:
        # "abcx" vs "abyc": LCS "abc" of 3 over the longer length 4
        assert similarity("abcx", "abyc") == pytest.approx(0.75)

    @pytest.mark.parametrize(
        "a,b",
        [
            ("鬼滅之刃：無限列車篇", "鬼滅之刃"),
            ("Dune", "Oppenheimer"),
            ("abcx", "abyc"),
            ("", "x"),
        ],
    )
    def test_is_symmetric(self, a: str, b: str) -> None:
        assert similarity(a, b) == similarity(b, a)

    def test_stays_in_unit_range(self) -> None:
        for a, b in [("a", "ab"), ("葬送的芙莉蓮", "芙莉蓮"), ("xyz", "abc")]:
            assert 0.0 <= similarity(a, b) <= 1.0


# ---------------------------------------------------------------------------
# resolve_theater_id
# ---------------------------------------------------------------------------


class TestResolveTheaterId:
    def test_known_names(self) -> None:
        assert resolve_theater_id("威秀影城") == "vieshow"
        assert resolve_theater_id("國賓") == "ambassador"

    def test_spacing_and_case_variants(self) -> None:
        assert resolve_theater_id("IN89 豪華數位影城") == "in89"

    def test_unknown_name_is_returned_as_is(self) -> None:
        assert resolve_theater_id("光點華山") == "光點華山"


# ---------------------------------------------------------------------------
# find_best_match
# ---------------------------------------------------------------------------


class TestFindBestMatch:
    def test_subtitled_scraped_title_matches_main_title(self) -> None:
        catalog = [make_movie(id="m1", title="鬼滅之刃"), make_movie(id="m2", title="沙丘")]
        match = find_best_match("鬼滅之刃：無限列車篇", catalog)
        assert match is not None
        assert match.id == "m1"

    def test_sibling_sequel_does_not_match(self) -> None:
        # Shared main title only; full titles score 3/8 on LCS
        catalog = [make_movie(title="蜘蛛人：返校日")]
        assert find_best_match("蜘蛛人：穿越新宇宙", catalog) is None

    def test_main_title_needs_exact_match(self) -> None:
        catalog = [make_movie(title="鬼滅之刃劇場版")]
        assert find_best_match("鬼滅之刃：無限列車篇", catalog) is None

    def test_full_title_beats_main_title_match(self) -> None:
        catalog = [
            make_movie(id="m1", title="鬼滅之刃"),
            make_movie(id="m2", title="鬼滅之刃 無限列車篇"),
        ]
        match = find_best_match("鬼滅之刃：無限列車篇", catalog)
        assert match is not None
        assert match.id == "m2"

    def test_matches_english_title(self) -> None:
        catalog = [make_movie(id="m1", title="沙丘：第二部", title_en="Dune: Part Two")]
        match = find_best_match("Dune: Part Two", catalog)
        assert match is not None
        assert match.id == "m1"

    def test_no_match_below_threshold(self) -> None:
        catalog = [make_movie(title="Oppenheimer")]
        assert find_best_match("Dune", catalog) is None

    def test_empty_catalog(self) -> None:
        assert find_best_match("Dune", []) is None

    def test_first_entry_wins_ties(self) -> None:
        catalog = [make_movie(id="first", title="Dune"), make_movie(id="second", title="Dune")]
        match = find_best_match("Dune", catalog)
        assert match is not None
        assert match.id == "first"

    def test_custom_threshold(self) -> None:
        catalog = [make_movie(title="abyc")]
        assert TitleMatcher(threshold=0.8).find_best_match("abcx", catalog) is None
        assert TitleMatcher(threshold=0.7).find_best_match("abcx", catalog) is not None


# ---------------------------------------------------------------------------
# merge_scraped_bonuses
# ---------------------------------------------------------------------------


class TestMergeScrapedBonuses:
    def test_adds_bonus_to_matched_movie(self) -> None:
        merged = merge_scraped_bonuses([make_movie()], [make_bonus()])

        movie = merged[0]
        assert movie.is_verified is True
        assert movie.data_source == "scraper"
        assert len(movie.theater_bonuses) == 1
        group = movie.theater_bonuses[0]
        assert group.theater_id == "vieshow"
        assert group.theater_name == "威秀影城"
        assert group.ticket_url == "https://www.vscinemas.com.tw/"
        assert group.bonuses == [Bonus(week=1, description="限定海報", quantity="每廳限量100份")]

    def test_does_not_modify_input_catalog(self) -> None:
        catalog = [make_movie()]
        merge_scraped_bonuses(catalog, [make_bonus()])

        assert catalog[0].theater_bonuses == []
        assert catalog[0].is_verified is False

    def test_merging_twice_is_idempotent(self) -> None:
        bonuses = [make_bonus(), make_bonus(week=2, description="角色色紙")]
        once = merge_scraped_bonuses([make_movie()], bonuses)
        twice = merge_scraped_bonuses(once, bonuses)
        assert twice == once

    def test_dedups_on_normalized_description(self) -> None:
        merged = merge_scraped_bonuses(
            [make_movie()],
            [make_bonus(description="限定海報 A3"), make_bonus(description="限定海報Ａ３")],
        )
        assert len(merged[0].theater_bonuses[0].bonuses) == 1

    def test_same_description_different_week_is_kept(self) -> None:
        merged = merge_scraped_bonuses(
            [make_movie()], [make_bonus(week=1), make_bonus(week=2)]
        )
        assert [b.week for b in merged[0].theater_bonuses[0].bonuses] == [1, 2]

    def test_reuses_existing_theater_group(self) -> None:
        existing = TheaterBonus(
            theater_id="vieshow",
            theater_name="威秀影城",
            bonuses=[Bonus(week=1, description="限定海報", quantity="數量有限")],
            ticket_url="https://example.test/tickets",
        )
        merged = merge_scraped_bonuses(
            [make_movie(theater_bonuses=[existing])],
            [make_bonus(theater_name="威秀"), make_bonus(theater_name="威秀", week=2)],
        )

        groups = merged[0].theater_bonuses
        assert len(groups) == 1
        assert groups[0].ticket_url == "https://example.test/tickets"
        assert [b.week for b in groups[0].bonuses] == [1, 2]

    def test_groups_by_theater(self) -> None:
        merged = merge_scraped_bonuses(
            [make_movie()],
            [make_bonus(theater_name="威秀影城"), make_bonus(theater_name="秀泰影城")],
        )
        assert [g.theater_id for g in merged[0].theater_bonuses] == ["vieshow", "showtimes"]

    def test_unmatched_bonus_is_dropped(self) -> None:
        merged = merge_scraped_bonuses([make_movie(title="Oppenheimer")], [make_bonus(movie_title="Dune")])
        assert merged[0].theater_bonuses == []
        assert merged[0].is_verified is False

    def test_unknown_theater_gets_group_without_ticket_url(self) -> None:
        merged = merge_scraped_bonuses([make_movie()], [make_bonus(theater_name="光點華山")])
        group = merged[0].theater_bonuses[0]
        assert group.theater_id == "光點華山"
        assert group.ticket_url == ""


# ---------------------------------------------------------------------------
# mark_rereleases
# ---------------------------------------------------------------------------


class TestMarkRereleases:
    def test_flags_restoration_title(self) -> None:
        marked = mark_rereleases([make_movie(title="鐵達尼號 4K數位修復版")])
        assert marked[0].is_rerelease is True

    def test_flags_from_synopsis(self) -> None:
        marked = mark_rereleases([make_movie(title="神隱少女", synopsis="經典重映，重返大銀幕")])
        assert marked[0].is_rerelease is True

    def test_leaves_regular_movie(self) -> None:
        marked = mark_rereleases([make_movie(title="沙丘", synopsis="沙漠星球的故事")])
        assert marked[0].is_rerelease is False

    def test_keeps_existing_flag(self) -> None:
        marked = mark_rereleases([make_movie(title="魔法公主", is_rerelease=True)])
        assert marked[0].is_rerelease is True

    def test_returns_copy(self) -> None:
        catalog = [make_movie(title="鐵達尼號 4K數位修復版")]
        mark_rereleases(catalog)
        assert catalog[0].is_rerelease is False

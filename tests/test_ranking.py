from datetime import datetime, timedelta

import pytest

from models.post import Post
from models.store import Store
from services.ranking import calculate_discount, is_post_active, list_posts, list_store_posts

NOW = datetime(2025, 3, 1, 12, 0, 0)


def _store(store_id, plan="basic", is_banned=False):
    return Store(
        id=store_id,
        name=f"Store {store_id}",
        plan=plan,
        billing_status="trial",
        is_banned=is_banned,
        categories=["Food"],
        created_at=NOW - timedelta(days=30),
    )


def _post(post_id, store_id, title="Deal", created_at=None, **fields):
    return Post(
        id=post_id,
        store_id=store_id,
        title=title,
        category=fields.pop("category", "Food"),
        categories=fields.pop("categories", ["Food"]),
        price_original=fields.pop("price_original", 100.0),
        price_sale=fields.pop("price_sale", 80.0),
        images=fields.pop("images", []),
        view_count=0,
        created_at=created_at,
        **fields,
    )


class TestCalculateDiscount:
    """Test cases for the discount percentage"""

    @pytest.mark.parametrize(
        "original,sale,expected",
        [
            (100, 80, 20),
            (100, 150, 0),
            (100, 0, 100),
            (0, 10, 0),
            (-5, 1, 0),
            (200, 150, 25),
            (3, 2, 33),
            (8, 7, 13),
            (1000, 995, 1),
        ],
    )
    def test_values(self, original, sale, expected):
        assert calculate_discount(original, sale) == expected

    def test_half_rounds_up(self):
        # 1 - 99.5 / 100 = 0.5%
        assert calculate_discount(100, 99.5) == 1


class TestIsPostActive:
    """Test cases for the display window"""

    def test_no_end_is_always_active(self):
        assert is_post_active(_post("p", "s", starts_at=NOW + timedelta(days=3)), NOW) is True

    def test_only_end_in_future(self):
        assert is_post_active(_post("p", "s", ends_at=NOW + timedelta(hours=1)), NOW) is True

    def test_only_end_in_past(self):
        assert is_post_active(_post("p", "s", ends_at=NOW - timedelta(hours=1)), NOW) is False

    def test_inside_window(self):
        post = _post("p", "s", starts_at=NOW - timedelta(days=1), ends_at=NOW + timedelta(days=1))
        assert is_post_active(post, NOW) is True

    def test_before_window(self):
        post = _post("p", "s", starts_at=NOW + timedelta(days=1), ends_at=NOW + timedelta(days=2))
        assert is_post_active(post, NOW) is False

    def test_window_bounds_are_inclusive(self):
        assert is_post_active(_post("p", "s", starts_at=NOW, ends_at=NOW + timedelta(days=1)), NOW) is True
        assert is_post_active(_post("p", "s", starts_at=NOW - timedelta(days=1), ends_at=NOW), NOW) is True


class TestListPosts:
    """Test cases for the public listing pipeline"""

    def test_premium_ranks_before_newer_basic(self):
        stores = [_store("basic-store"), _store("premium-store", plan="premium")]
        posts = [
            _post("today", "basic-store", created_at=NOW),
            _post("yesterday", "premium-store", created_at=NOW - timedelta(days=1)),
        ]

        result = list_posts(posts, stores, now=NOW)

        assert [view.id for view in result] == ["yesterday", "today"]

    def test_plan_order_then_newest_first(self):
        stores = [_store("b"), _store("p", plan="pro"), _store("x", plan="premium")]
        posts = [
            _post("b-old", "b", created_at=NOW - timedelta(days=2)),
            _post("p-new", "p", created_at=NOW),
            _post("b-new", "b", created_at=NOW),
            _post("x-old", "x", created_at=NOW - timedelta(days=5)),
            _post("p-old", "p", created_at=NOW - timedelta(days=1)),
        ]

        result = list_posts(posts, stores, now=NOW)

        assert [view.id for view in result] == ["x-old", "p-new", "p-old", "b-new", "b-old"]

    def test_missing_created_at_sorts_last(self):
        stores = [_store("s")]
        posts = [_post("undated", "s", created_at=None), _post("dated", "s", created_at=NOW)]

        result = list_posts(posts, stores, now=NOW)

        assert [view.id for view in result] == ["dated", "undated"]

    def test_unknown_plan_ranks_as_basic(self):
        stores = [_store("odd", plan="gold"), _store("b")]
        posts = [
            _post("odd-post", "odd", created_at=NOW - timedelta(days=1)),
            _post("basic-post", "b", created_at=NOW),
        ]

        result = list_posts(posts, stores, now=NOW)

        assert [view.id for view in result] == ["basic-post", "odd-post"]

    def test_banned_store_posts_removed(self):
        stores = [_store("ok"), _store("banned", plan="premium", is_banned=True)]
        posts = [_post("visible", "ok", created_at=NOW), _post("hidden", "banned", created_at=NOW)]

        result = list_posts(posts, stores, now=NOW)

        assert [view.id for view in result] == ["visible"]

    def test_query_is_case_insensitive_title_match(self):
        stores = [_store("s")]
        posts = [
            _post("a", "s", title="Cheap PIZZA today"),
            _post("b", "s", title="Burgers"),
        ]

        result = list_posts(posts, stores, query="pizza", now=NOW)

        assert [view.id for view in result] == ["a"]

    def test_category_filter_matches_any_category(self):
        stores = [_store("s")]
        posts = [
            _post("a", "s", category="Food", categories=["Food", "Drinks"]),
            _post("b", "s", category="Shoes", categories=["Shoes"]),
        ]

        result = list_posts(posts, stores, category="drinks", now=NOW)

        assert [view.id for view in result] == ["a"]

    def test_view_model_carries_store_summary(self):
        stores = [_store("s", plan="pro")]
        posts = [_post("a", "s", created_at=NOW, images=[{"url": "https://img/1.jpg"}])]

        view = list_posts(posts, stores, now=NOW)[0]

        assert view.discount == 20
        assert view.is_active is True
        assert view.images[0].alt == "Deal"
        assert view.store.id == "s"
        assert view.store.plan == "pro"
        assert view.store.categories == ["Food"]

    def test_camel_case_json(self):
        stores = [_store("s")]
        posts = [_post("a", "s", created_at=NOW)]

        data = list_posts(posts, stores, now=NOW)[0].model_dump(by_alias=True)

        assert "priceOriginal" in data
        assert "viewCount" in data
        assert "billingStatus" in data["store"]


class TestListStorePosts:
    """Test cases for one store's post list"""

    def test_newest_first_and_active_only(self):
        store = _store("s")
        posts = [
            _post("old", "s", created_at=NOW - timedelta(days=3)),
            _post("ended", "s", created_at=NOW - timedelta(days=1), ends_at=NOW - timedelta(hours=1)),
            _post("new", "s", created_at=NOW),
        ]

        assert [v.id for v in list_store_posts(store, posts, NOW)] == ["new", "ended", "old"]
        assert [v.id for v in list_store_posts(store, posts, NOW, active_only=True)] == ["new", "old"]

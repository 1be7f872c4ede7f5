from auction_signal.context import build_context, resolve_content_context


def _with_content(**content):
    return {"site": {"content": content}}


def test_first_bidder_request_with_content_wins():
    args = {
        "bidderRequests": [
            {"bidderCode": "a", "ortb2": {"site": {}}},
            {"bidderCode": "b", "ortb2": _with_content(language="en", keywords=["news", "sports"])},
            {"bidderCode": "c", "ortb2": _with_content(language="fr")},
        ],
        "ortb2": _with_content(language="de"),
    }

    context = resolve_content_context(args, _with_content(language="es"))

    assert context is not None
    assert context.to_wire() == {"language": "en", "keywords": ["news", "sports"], "source": "ortb2"}


def test_bidder_request_with_empty_content_is_skipped():
    args = {
        "bidderRequests": [
            {"bidderCode": "a", "ortb2": _with_content(keywords=[])},
            {"bidderCode": "b", "ortb2": _with_content(keywords=["finance"])},
        ],
    }

    context = resolve_content_context(args)
    assert context.to_wire() == {"keywords": ["finance"], "source": "ortb2"}


def test_falls_back_to_auction_then_global():
    args = {"bidderRequests": [{"bidderCode": "a"}], "ortb2": _with_content(language="de")}
    assert resolve_content_context(args, _with_content(language="es")).language == "de"

    args = {"bidderRequests": []}
    assert resolve_content_context(args, _with_content(language="es")).language == "es"


def test_none_when_no_source_has_content():
    args = {"bidderRequests": [{"bidderCode": "a", "ortb2": _with_content(title="x")}]}
    assert resolve_content_context(args, {"site": {"page": "/"}}) is None
    assert resolve_content_context({}, None) is None


def test_malformed_structures_are_not_found():
    args = {
        "bidderRequests": ["not-a-dict", {"ortb2": "broken"}, {"ortb2": {"site": ["x"]}}],
        "ortb2": {"site": {"content": 7}},
    }
    assert resolve_content_context(args, {"site": None}) is None


def test_non_iterable_bidder_requests_are_caught():
    assert resolve_content_context({"bidderRequests": 42}) is None


def test_comma_separated_keywords_are_split():
    context = build_context({"keywords": "ai, machine learning ,,news"})
    assert context.keywords == ("ai", "machine learning", "news")
    assert context.language is None


def test_language_only_context_omits_keywords():
    context = build_context({"language": "en", "keywords": [""]})
    assert context.to_wire() == {"language": "en", "source": "ortb2"}

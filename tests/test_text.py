from lostfound_matcher.text import (
    KeywordBoost,
    clean_text,
    flatten_attributes,
    prepare_text,
    strip_stopwords,
)


def test_flatten_drops_keys_and_recurses():
    attrs = {"Color": "black", "Extra": {"Serial": "SN-4471", "Case": {"Kind": "hard"}}}
    assert flatten_attributes(attrs) == "black SN-4471 hard"


def test_flatten_handles_none_strings_and_scalars():
    assert flatten_attributes(None) == ""
    assert flatten_attributes({}) == ""
    assert flatten_attributes("  as typed ") == "  as typed "
    assert flatten_attributes({"size": 42, "tags": ["a", None, "b"], "lost": None}) == "42 a b"


def test_clean_text_strips_punctuation_and_whitespace():
    assert clean_text("  Library,  2nd   Floor!! ") == "library 2nd floor"
    assert clean_text("snake_case-ID") == "snakecaseid"
    assert clean_text(None) == ""


def test_stopwords_removed_as_whole_words():
    assert strip_stopwords("i have a black sony headphone") == "black sony headphone"
    assert strip_stopwords("there is a scratch on the island") == "scratch island"
    # "a" inside a word stays
    assert strip_stopwords("canvas bag") == "canvas bag"


def test_keyword_boost_duplicates_whole_words_only():
    boost = KeywordBoost()
    assert boost.found("stored in a red box") == ["red"]
    assert boost.apply("iphone pro max space gray") == "iphone pro max space gray space gray pro max"
    assert boost.apply("plain wallet") == "plain wallet"


def test_keyword_boost_is_pluggable():
    boost = KeywordBoost(["Leather", " "])
    assert boost.keywords == ("leather",)
    assert boost.apply("brown leather wallet") == "brown leather wallet leather"


def test_prepare_text_pipeline():
    assert prepare_text({"desc": "I have a Black Sony headphone."}) == "black sony headphone black"
    assert prepare_text({"desc": "I have a Black Sony headphone."}, boost=None) == "black sony headphone"
    assert prepare_text({"a": "the", "b": "is"}) == ""
    assert prepare_text(None) == ""


def test_flatten_orders_sets():
    assert flatten_attributes({"tags": {"zip", "black", "leather"}}) == "black leather zip"

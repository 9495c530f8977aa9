"""Unit tests for Wikimedia URL helpers and the lookup client."""

import httpx
import pytest

from poi_planner.services.wikimedia import WikimediaService
from poi_planner.utils.wikimedia import (
    commons_file_page,
    commons_file_path,
    encode_filename,
    is_wikipedia_url,
    parse_wikipedia_url,
    wikipedia_file_page,
)


class TestUrlConstruction:
    def test_spaces_become_underscores(self) -> None:
        assert commons_file_page("Brandenburger Tor abends.jpg") == (
            "https://commons.wikimedia.org/wiki/File:Brandenburger_Tor_abends.jpg"
        )

    def test_file_path(self) -> None:
        assert commons_file_path("Reichstag building.jpg") == (
            "https://commons.wikimedia.org/wiki/Special:FilePath/Reichstag_building.jpg"
        )

    def test_encodes_like_encode_uri_component(self) -> None:
        # Non-ASCII and reserved characters are escaped, !*'() are kept
        assert encode_filename("Berliner Dom (2019) – Süd/Ost.jpg") == (
            "Berliner_Dom_(2019)_%E2%80%93_S%C3%BCd%2FOst.jpg"
        )
        assert encode_filename("It's a & b!.png") == "It's_a_%26_b!.png"

    def test_wikipedia_file_page(self) -> None:
        assert wikipedia_file_page("nl", "Fernsehturm Berlin.jpg") == (
            "https://nl.wikipedia.org/wiki/File:Fernsehturm_Berlin.jpg"
        )


class TestWikipediaLinks:
    def test_supported_editions(self) -> None:
        assert is_wikipedia_url("https://nl.wikipedia.org/wiki/Reichstag")
        assert is_wikipedia_url("http://EN.wikipedia.org/wiki/Reichstag_building")

    def test_unsupported(self) -> None:
        assert not is_wikipedia_url("https://de.wikipedia.org/wiki/Reichstag")
        assert not is_wikipedia_url("https://www.berlin.de/")
        assert not is_wikipedia_url(None)

    def test_parse_decodes_title(self) -> None:
        article = parse_wikipedia_url("https://en.wikipedia.org/wiki/Museum_f%C3%BCr_Naturkunde")
        assert article is not None
        assert article.lang == "en"
        assert article.title == "Museum für Naturkunde"

    def test_parse_normalises_language_case(self) -> None:
        article = parse_wikipedia_url("https://NL.wikipedia.org/wiki/Berlijnse_Muur")
        assert article is not None
        assert article.lang == "nl"
        assert article.title == "Berlijnse Muur"

    def test_parse_rejects_other_urls(self) -> None:
        assert parse_wikipedia_url("https://fr.wikipedia.org/wiki/Berlin") is None


def _service(handler) -> WikimediaService:
    return WikimediaService(transport=httpx.MockTransport(handler))


class TestWikimediaService:
    @pytest.mark.asyncio
    async def test_lookup_identifier(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "query": {"pages": {"123": {"title": "Reichstag", "pageprops": {"wikibase_item": "Q151897"}}}}
            })

        service = _service(handler)
        assert await service.lookup_identifier("nl", "Reichstag") == "Q151897"
        assert seen[0].url.host == "nl.wikipedia.org"
        assert seen[0].url.params["ppprop"] == "wikibase_item"
        assert seen[0].url.params["titles"] == "Reichstag"
        assert seen[0].headers["User-Agent"].startswith("POIWalkPlanner")
        await service.close()

    @pytest.mark.asyncio
    async def test_lookup_identifier_is_memoised(self) -> None:
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(200, json={"query": {"pages": {"-1": {"missing": ""}}}})

        service = _service(handler)
        assert await service.lookup_identifier("en", "Nowhere") is None
        assert await service.lookup_identifier("en", "Nowhere") is None
        assert count == 1
        await service.close()

    @pytest.mark.asyncio
    async def test_lookup_identifier_server_error_not_memoised(self) -> None:
        count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal count
            count += 1
            return httpx.Response(500)

        service = _service(handler)
        assert await service.lookup_identifier("en", "Reichstag") is None
        assert await service.lookup_identifier("en", "Reichstag") is None
        assert count == 2
        await service.close()

    @pytest.mark.asyncio
    async def test_fetch_claims(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["action"] == "wbgetentities"
            return httpx.Response(200, json={"entities": {"Q82425": {"claims": {
                "P18": [{"mainsnak": {"datavalue": {"value": "Brandenburger Tor abends.jpg"}}}],
                "P625": [{"mainsnak": {"datavalue": {"value": {"latitude": 52.5163, "longitude": 13.3777}}}}],
            }}}})

        service = _service(handler)
        claims = await service.fetch_claims("Q82425")
        assert claims is not None
        assert claims.commons_file == "Brandenburger Tor abends.jpg"
        assert claims.coordinates is not None
        assert claims.coordinates.lat == pytest.approx(52.5163)
        await service.close()

    @pytest.mark.asyncio
    async def test_fetch_claims_without_image(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"entities": {"Q1": {"claims": {}}}})

        service = _service(handler)
        claims = await service.fetch_claims("Q1")
        assert claims is not None
        assert claims.commons_file is None
        assert claims.coordinates is None
        await service.close()

    @pytest.mark.asyncio
    async def test_fetch_claims_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>not json</html>")

        service = _service(handler)
        assert await service.fetch_claims("Q1") is None
        await service.close()

    @pytest.mark.asyncio
    async def test_fetch_page_thumbnail(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["prop"] == "pageimages"
            assert request.url.params["pithumbsize"] == "640"
            return httpx.Response(200, json={"query": {"pages": {"42": {
                "thumbnail": {"source": "https://upload.wikimedia.org/thumb/tv.jpg"},
                "pageimage": "Fernsehturm Berlin.jpg",
            }}}})

        service = _service(handler)
        thumb = await service.fetch_page_thumbnail("en", "Fernsehturm Berlin")
        assert thumb is not None
        assert thumb.thumbnail_url == "https://upload.wikimedia.org/thumb/tv.jpg"
        assert thumb.filename == "Fernsehturm Berlin.jpg"
        await service.close()

    @pytest.mark.asyncio
    async def test_fetch_page_thumbnail_missing_page(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"query": {"pages": {"-1": {"missing": ""}}}})

        service = _service(handler)
        assert await service.fetch_page_thumbnail("en", "Nope") is None
        await service.close()

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        service = _service(handler)
        assert await service.fetch_page_thumbnail("nl", "Nope") is None
        await service.close()

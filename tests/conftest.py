"""Shared fixtures: listing markup builders and a fake HTTP source."""

import httpx
import pytest

BASE_URL = "https://patronite.pl/"


def card_html(
    url,
    name="Creator",
    image="https://cdn.example/img.jpg",
    patrons="150",
    monthly="2 tys. zł",
    total="1.5 mln zł",
    tags=("polityka", "media"),
):
    link = f'<a class="author__card" href="{url}">' if url else '<a class="author__card">'
    image_html = f'<img data-src="{image}">' if image is not None else ""
    numbers = []
    if patrons is not None:
        numbers.append(f"<div><span>{patrons}</span> patronów</div>")
    if monthly is not None:
        numbers.append(f"<div><span>{monthly}</span> miesięcznie</div>")
    if total is not None:
        numbers.append(f"<div><span>{total}</span> łącznie</div>")
    tags_html = "\n".join(f"<span>{tag}</span>" for tag in tags)
    return f"""
    <div class="carousel-cell">
      {link}
        {image_html}
        <div class="card__content--name"><h5> {name} </h5></div>
        <div class="card__content--numbers">
          {"".join(numbers)}
        </div>
        <div class="card__content--tags">
          {tags_html}
        </div>
      </a>
    </div>
    """


def section_html(heading, cards):
    return f"""
    <section>
      <div class="section__header"><h4>{heading}</h4></div>
      <div class="author__list">
        {"".join(cards)}
      </div>
    </section>
    """


def listing_page(all_cards=(), recommended_cards=None, with_all_section=True):
    parts = []
    if recommended_cards is not None:
        parts.append(section_html("Nasz wybór", recommended_cards))
    if with_all_section:
        parts.append(section_html("Wszyscy twórcy", all_cards))
    return f"<html><body><main>{''.join(parts)}</main></body></html>"


def discovery_page(category_hrefs):
    items = "\n".join(
        f'<div class="tag"><a href="{href}">Category</a></div>' for href in category_hrefs
    )
    return f'<html><body><div class="tags">\n{items}\n</div></body></html>'


class FakeSite:
    """
    In-memory listing site served through httpx.MockTransport.

    ``pages`` maps (path, page number or None) to HTML; anything missing
    answers 404. ``redirects`` maps a path to a Location answered with 302.
    ``requests`` records every (path, page) requested.
    """

    def __init__(self, pages=None, redirects=None):
        self.pages = dict(pages or {})
        self.redirects = dict(redirects or {})
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        page = request.url.params.get("page")
        key = (request.url.path, int(page) if page is not None else None)
        self.requests.append(key)
        location = self.redirects.get(request.url.path)
        if location is not None:
            return httpx.Response(302, headers={"Location": location})
        body = self.pages.get(key)
        if body is None:
            return httpx.Response(404, text="Page not found")
        return httpx.Response(200, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=BASE_URL,
            transport=httpx.MockTransport(self.handler),
            follow_redirects=True,
        )


async def _no_sleep(seconds):
    return None


@pytest.fixture
def no_sleep():
    return _no_sleep


@pytest.fixture
def card():
    return card_html


@pytest.fixture
def listing():
    return listing_page


@pytest.fixture
def discovery():
    return discovery_page


@pytest.fixture
def fake_site():
    return FakeSite()

# File: tests/test_crawler.py
# End-to-end tests for the crawl dispatcher against local aiohttp servers
from __future__ import annotations

import asyncio
import time
from collections import Counter

import pytest
from aiohttp import web

#: number of seconds a "slow" handler sleeps in the concurrency test
SLOW_SLEEP: float = 0.5
#: pages linked from the root in the stress test
STRESS_PAGES: int = 150


def html(body: str):
    async def handler(_):
        return web.Response(text=f"<html><body>{body}</body></html>", content_type="text/html")
    return handler


def text(body: str, content_type: str = "text/plain"):
    async def handler(_):
        return web.Response(text=body, content_type=content_type)
    return handler


def counting(hits: Counter, key: str, response_factory):
    async def handler(request):
        hits[key] += 1
        return response_factory(request)
    return handler


def url_lines(lines, url):
    return [line for line in lines if line.startswith("[url]") and line.endswith(f" - {url}")]


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_duplicate_hrefs_visit_once(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    state = {}

    async def root(_):
        target = f"{state['base']}/page"
        return web.Response(
            text=f'<a href="{target}">one</a><a href="{target}">two</a><a href="/page#frag">three</a>',
            content_type="text/html",
        )

    app.router.add_get("/", root)
    app.router.add_get("/page", counting(hits, "page", lambda _: web.Response(text="ok", content_type="text/html")))
    state["base"] = base = await serve(app)

    lines = await run_crawl(make_config(base))

    assert url_lines(lines, base) == [f"[url] - [code-200] - {base}"]
    assert url_lines(lines, f"{base}/page") == [f"[url] - [code-200] - {base}/page"]
    assert hits["page"] == 1


@pytest.mark.asyncio()
async def test_script_links_buckets_and_subdomains(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html('<script src="/static/app.js"></script>'))
    app.router.add_get(
        "/static/app.js",
        counting(
            hits,
            "js",
            lambda _: web.Response(
                text='var u = "/api/v1/users";\n// assets live on bucket.s3.amazonaws.com\n',
                content_type="application/javascript",
            ),
        ),
    )
    app.router.add_get(
        "/api/v1/users",
        counting(hits, "api", lambda _: web.json_response({"mirror": "https://eu.localhost/x"})),
    )
    base = await serve(app)

    lines = await run_crawl(make_config(base))

    assert lines.count(f"[javascript] - {base}/static/app.js") == 1
    assert [l for l in lines if l.startswith("[linkfinder]")] == [
        f"[linkfinder] - [from: {base}/static/app.js] - /api/v1/users"
    ]
    assert [l for l in lines if l.startswith("[aws-s3]")] == ["[aws-s3] - bucket.s3.amazonaws.com"]
    assert hits["js"] == 1
    # fed back into the frontier and visited by the dispatcher
    assert hits["api"] == 1
    assert url_lines(lines, f"{base}/api/v1/users") == [f"[url] - [code-200] - {base}/api/v1/users"]
    assert "[subdomains] - eu.localhost" in lines


@pytest.mark.asyncio()
async def test_minified_script_resolves_original(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html('<script src="/app.min.js"></script>'))
    app.router.add_get("/app.min.js", counting(hits, "min", lambda _: web.Response(text="!function(){}")))
    app.router.add_get("/app.js", counting(hits, "full", lambda _: web.Response(text='get("/full/endpoint")')))
    app.router.add_get("/full/endpoint", html("endpoint"))
    base = await serve(app)

    lines = await run_crawl(make_config(base))

    assert hits == Counter({"min": 1, "full": 1})
    assert f"[javascript] - {base}/app.min.js" in lines
    assert f"[javascript] - {base}/app.js" not in lines
    assert f"[linkfinder] - [from: {base}/app.js] - /full/endpoint" in lines
    assert f"[url] - [code-200] - {base}/full/endpoint" in lines


@pytest.mark.asyncio()
async def test_status_999_is_retried_once(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html('<a href="/busy">busy</a><a href="/flaky">flaky</a>'))
    app.router.add_get("/busy", counting(hits, "busy", lambda _: web.Response(status=999)))

    async def flaky(_):
        hits["flaky"] += 1
        if hits["flaky"] == 1:
            return web.Response(status=999)
        return web.Response(text="recovered", content_type="text/html")

    app.router.add_get("/flaky", flaky)
    base = await serve(app)

    lines = await run_crawl(make_config(base))

    assert hits["busy"] == 2
    assert url_lines(lines, f"{base}/busy") == [f"[url] - [code-999] - {base}/busy"]
    assert hits["flaky"] == 2
    assert url_lines(lines, f"{base}/flaky") == [f"[url] - [code-200] - {base}/flaky"]


@pytest.mark.asyncio()
async def test_failure_classification(serve, make_config, run_crawl, unused_tcp_port):
    hits: Counter = Counter()
    dead = f"http://localhost:{unused_tcp_port}/down"
    app = web.Application()
    app.router.add_get(
        "/",
        html(f'<a href="/missing">a</a><a href="/limited">b</a><a href="/broken">c</a>'
             f'<a href="/forbidden">d</a><a href="{dead}">e</a>'),
    )
    app.router.add_get("/missing", counting(hits, "missing", lambda _: web.Response(status=404)))
    app.router.add_get("/limited", counting(hits, "limited", lambda _: web.Response(status=429)))
    app.router.add_get("/broken", counting(hits, "broken", lambda _: web.Response(status=500)))
    app.router.add_get("/forbidden", counting(hits, "forbidden", lambda _: web.Response(status=403)))
    base = await serve(app)

    lines = await run_crawl(make_config(base))

    assert hits == Counter({"missing": 1, "limited": 1, "broken": 1, "forbidden": 1})
    assert url_lines(lines, f"{base}/missing") == []
    assert url_lines(lines, f"{base}/limited") == []
    assert url_lines(lines, dead) == []
    assert url_lines(lines, f"{base}/broken") == [f"[url] - [code-500] - {base}/broken"]
    assert url_lines(lines, f"{base}/forbidden") == [f"[url] - [code-403] - {base}/forbidden"]


@pytest.mark.asyncio()
async def test_depth_limit(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html('<a href="/one">1</a>'))
    app.router.add_get("/one", counting(hits, "one", lambda _: web.Response(text='<a href="/two">2</a>', content_type="text/html")))
    app.router.add_get("/two", counting(hits, "two", lambda _: web.Response(text="end", content_type="text/html")))
    base = await serve(app)

    lines = await run_crawl(make_config(base, max_depth=1))
    assert hits["one"] == 0
    assert [l for l in lines if l.startswith("[url]")] == [f"[url] - [code-200] - {base}"]

    lines = await run_crawl(make_config(base, max_depth=2))
    assert hits["one"] == 1 and hits["two"] == 0

    lines = await run_crawl(make_config(base, max_depth=0))
    assert hits["two"] == 1
    assert f"[url] - [code-200] - {base}/two" in lines


@pytest.mark.asyncio()
async def test_script_links_bypass_depth(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html('<script src="/main.js"></script><a href="/deep">x</a>'))
    app.router.add_get("/main.js", text('route("/hidden/admin")'))
    app.router.add_get("/hidden/admin", counting(hits, "hidden", lambda _: web.Response(text="secret", content_type="text/html")))
    app.router.add_get("/deep", counting(hits, "deep", lambda _: web.Response(text="deep", content_type="text/html")))
    base = await serve(app)

    lines = await run_crawl(make_config(base, max_depth=1))

    assert hits["deep"] == 0
    assert hits["hidden"] == 1
    assert f"[url] - [code-200] - {base}/hidden/admin" in lines


@pytest.mark.asyncio()
async def test_forms_uploads_and_scope(serve, make_config, run_crawl):
    hits: Counter = Counter()
    page = (
        '<form action="/login"><input type="file" name="f"></form>'
        '<form action="https://other.example/collect"></form>'
        '<a href="/second">2</a><a href="https://other.example/">out</a>'
        '<a href="/logo.png">img</a><a href="/logout">bye</a>'
        '<img src="/static/photo.js.png">'
    )
    app = web.Application()
    app.router.add_get("/", html(page))
    app.router.add_get("/second", html('<form action="/login"></form>'))
    app.router.add_get("/logo.png", counting(hits, "png", lambda _: web.Response(body=b"\x89PNG")))
    app.router.add_get("/logout", counting(hits, "logout", lambda _: web.Response(text="bye")))
    base = await serve(app)

    lines = await run_crawl(make_config(base, blacklist="/logout"))

    assert lines.count(f"[form] - {base}/login") == 1
    assert not any("other.example" in l for l in lines)
    assert lines.count(f"[upload-form] - {base}") == 1
    assert hits == Counter()
    assert not any(l.startswith("[javascript]") for l in lines)


@pytest.mark.asyncio()
async def test_robots_and_sitemap_seed_frontier(serve, make_config, run_crawl):
    hits: Counter = Counter()
    app = web.Application()
    app.router.add_get("/", html("root"))
    app.router.add_get("/robots.txt", text("User-agent: *\nDisallow: /private/\n"))
    state = {}

    async def sitemap_index(_):
        return web.Response(
            text=f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
                 f'<sitemap><loc>{state["base"]}/posts.xml</loc></sitemap></sitemapindex>',
            content_type="application/xml",
        )

    async def posts(_):
        return web.Response(
            text=f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
                 f'<url><loc>{state["base"]}/blog/1</loc></url>'
                 f'<url><loc>https://elsewhere.test/blog/2</loc></url></urlset>',
            content_type="application/xml",
        )

    app.router.add_get("/sitemap.xml", sitemap_index)
    app.router.add_get("/posts.xml", posts)
    app.router.add_get("/private/", counting(hits, "private", lambda _: web.Response(text="p", content_type="text/html")))
    app.router.add_get("/blog/1", counting(hits, "blog", lambda _: web.Response(text="b", content_type="text/html")))
    state["base"] = base = await serve(app)

    lines = await run_crawl(make_config(base, robots=True, sitemap=True))

    assert f"[robots] - {base}/private/" in lines
    assert f"[sitemap] - {base}/blog/1" in lines
    assert not any("elsewhere.test" in l for l in lines)
    assert hits == Counter({"private": 1, "blog": 1})


@pytest.mark.asyncio()
async def test_referer_and_static_headers(serve, make_config, run_crawl):
    seen = {}
    app = web.Application()
    app.router.add_get("/", html('<a href="/next">n</a>'))

    async def nxt(request):
        seen.update(request.headers)
        return web.Response(text="n", content_type="text/html")

    app.router.add_get("/next", nxt)
    base = await serve(app)

    await run_crawl(make_config(base, headers={"X-Api-Key": "k"}, cookie="sid=1", user_agent="Custom/9"))

    assert seen["Referer"] == base
    assert seen["X-Api-Key"] == "k"
    assert seen["Cookie"] == "sid=1"
    assert seen["User-Agent"] == "Custom/9"


@pytest.mark.asyncio()
async def test_concurrency(serve, make_config, run_crawl):
    """Two slow pages are fetched in parallel."""
    async def slow(_):
        await asyncio.sleep(SLOW_SLEEP)
        return web.Response(text="<h1>slow</h1>", content_type="text/html")

    app = web.Application()
    app.router.add_get("/", html('<a href="/slow1">1</a><a href="/slow2">2</a>'))
    app.router.add_get("/slow1", slow)
    app.router.add_get("/slow2", slow)
    base = await serve(app)

    start = time.perf_counter()
    lines = await run_crawl(make_config(base, concurrency=2))
    elapsed = time.perf_counter() - start

    assert elapsed < SLOW_SLEEP * 1.8
    assert f"[url] - [code-200] - {base}/slow1" in lines
    assert f"[url] - [code-200] - {base}/slow2" in lines


@pytest.mark.asyncio()
@pytest.mark.slow()
async def test_stress_crawl(serve, make_config, run_crawl):
    links = "".join(f'<a href="/page{i}">p</a><a href="/page{(i + 1) % STRESS_PAGES}">q</a>' for i in range(STRESS_PAGES))
    app = web.Application()
    app.router.add_get("/", html(links))
    for i in range(STRESS_PAGES):
        app.router.add_get(f"/page{i}", html(f'<a href="/">home</a><a href="/page{(i * 7) % STRESS_PAGES}">x</a>'))
    base = await serve(app)

    lines = await run_crawl(make_config(base, max_depth=0, concurrency=20), timeout=60)
    visited = [l for l in lines if l.startswith("[url]")]

    assert len(visited) == STRESS_PAGES + 1
    assert len(set(visited)) == len(visited)

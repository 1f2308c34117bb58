"""FastAPI application entrypoint."""

from __future__ import annotations

import html

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.middleware.sessions import SessionMiddleware

from newsdash.api.auth import current_user
from newsdash.api.auth import router as auth_router
from newsdash.api.routes import router
from newsdash.config import AuthSettings
from newsdash.models import DEFAULT_IMAGE_PATH

BASE_STYLE = """
      :root {
        color-scheme: light;
        font-family: "Inter", system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        --color-page: #f5f7fb;
        --color-card: #ffffff;
        --color-border: #e5e7eb;
        --color-muted: #6b7280;
        --color-text: #1f2937;
        --color-blue-1: #eff6ff;
        --color-blue-2: #dbeafe;
        --color-blue-3: #3b82f6;
        --color-blue-4: #2563eb;
        --color-indigo: #4f46e5;
        --color-red-1: #fef2f2;
        --color-red-2: #b91c1c;
        background: var(--color-page);
        color: var(--color-text);
      }

      body {
        margin: 0;
        min-height: 100vh;
      }

      button,
      .button {
        appearance: none;
        border: 1px solid var(--color-border);
        border-radius: 10px;
        padding: 10px 18px;
        font-size: 0.95rem;
        font-weight: 600;
        cursor: pointer;
        background: var(--color-card);
        color: var(--color-text);
        text-decoration: none;
        display: inline-flex;
        align-items: center;
        justify-content: center;
        gap: 8px;
        transition: background 0.2s ease, transform 0.2s ease;
      }

      button:hover,
      .button:hover {
        background: #f3f4f6;
      }

      .button.primary,
      button.primary {
        border: none;
        color: white;
        background: linear-gradient(135deg, var(--color-blue-3), var(--color-indigo));
        box-shadow: 0 12px 30px rgba(37, 99, 235, 0.25);
      }

      .button.primary:hover,
      button.primary:hover {
        transform: translateY(-1px);
      }
"""

LOGIN_HTML = """
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Login | News Dashboard</title>
    <meta name="description" content="Sign in to access your personalised news dashboard" />
    <style>
""" + BASE_STYLE + """
      body {
        display: flex;
        align-items: center;
        justify-content: center;
        padding: 16px;
        background: linear-gradient(135deg, var(--color-blue-1), #e0e7ff);
      }

      .login-card {
        width: min(760px, 100%);
        display: grid;
        grid-template-columns: 1fr 1fr;
        border-radius: 24px;
        overflow: hidden;
        box-shadow: 0 35px 80px rgba(15, 23, 42, 0.18);
      }

      .branding {
        background: linear-gradient(135deg, var(--color-blue-4), var(--color-indigo));
        color: white;
        padding: 48px 40px;
        display: flex;
        flex-direction: column;
        gap: 24px;
      }

      .branding h1 {
        margin: 0;
        font-size: 2rem;
      }

      .branding p {
        margin: 0;
        color: var(--color-blue-2);
        line-height: 1.6;
      }

      .login-form {
        background: var(--color-card);
        padding: 48px 40px;
        display: grid;
        align-content: center;
        gap: 20px;
        text-align: center;
      }

      .login-form h2 {
        margin: 0;
      }

      .login-form p {
        margin: 0;
        color: var(--color-muted);
      }

      @media (max-width: 720px) {
        .login-card {
          grid-template-columns: 1fr;
        }
      }
    </style>
  </head>
  <body>
    <div class="login-card">
      <section class="branding">
        <h1>News Dashboard</h1>
        <p>Top stories from NewsAPI, Event Registry and The New York Times in one place.</p>
        <p>Sign in with your Google account. No passwords to remember.</p>
      </section>
      <section class="login-form">
        <h2>Welcome back</h2>
        <p>Sign in to access your personalised news dashboard</p>
        <a class="button primary" href="/auth/google" aria-label="Sign in with Google">
          Continue with Google &rarr;
        </a>
      </section>
    </div>
  </body>
</html>
"""

DASHBOARD_HTML = """
<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Dashboard - Personalised News Feed</title>
    <meta
      name="description"
      content="Your news dashboard showing the latest articles from NewsAPI, NYTimes and EventRegistry."
    />
    <style>
""" + BASE_STYLE + """
      .page {
        max-width: 1200px;
        margin: 0 auto;
        padding: 32px 24px 48px;
        display: grid;
        gap: 32px;
      }

      header {
        display: flex;
        flex-wrap: wrap;
        align-items: center;
        justify-content: space-between;
        gap: 16px;
      }

      header h1 {
        margin: 0;
        font-size: 1.6rem;
      }

      header h1 span {
        color: var(--color-blue-4);
      }

      header p {
        margin: 4px 0 0;
        color: var(--color-muted);
      }

      .stats {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 16px;
      }

      .stat-card,
      .panel {
        background: var(--color-card);
        border: 1px solid var(--color-border);
        border-radius: 16px;
        padding: 20px;
      }

      .stat-card p {
        margin: 0;
        color: var(--color-muted);
        font-size: 0.9rem;
      }

      .stat-card strong {
        display: block;
        margin-top: 6px;
        font-size: 1.6rem;
      }

      .toolbar {
        display: flex;
        flex-wrap: wrap;
        align-items: center;
        justify-content: space-between;
        gap: 16px;
        padding-bottom: 20px;
        margin-bottom: 20px;
        border-bottom: 1px solid var(--color-border);
      }

      .search-input {
        flex: 1;
        min-width: 240px;
        max-width: 560px;
        padding: 10px 14px;
        border-radius: 10px;
        border: 1px solid #d1d5db;
        background: #f9fafb;
        font-size: 1rem;
      }

      .source-filters {
        display: flex;
        flex-wrap: wrap;
        gap: 8px;
      }

      .source-filters button.active {
        background: var(--color-blue-4);
        border-color: var(--color-blue-4);
        color: white;
      }

      .articles {
        display: grid;
        grid-template-columns: repeat(auto-fill, minmax(300px, 1fr));
        gap: 24px;
      }

      .article-card {
        border: 1px solid var(--color-border);
        border-radius: 16px;
        overflow: hidden;
        display: flex;
        flex-direction: column;
      }

      .article-card .image {
        position: relative;
        height: 180px;
        background: #f3f4f6;
      }

      .article-card img {
        width: 100%;
        height: 100%;
        object-fit: cover;
      }

      .badge {
        position: absolute;
        left: 16px;
        bottom: 16px;
        padding: 2px 10px;
        border-radius: 9999px;
        font-size: 0.75rem;
        font-weight: 600;
        background: var(--color-blue-2);
        color: #1e40af;
      }

      .article-body {
        padding: 18px;
        display: grid;
        gap: 10px;
      }

      .article-meta {
        color: var(--color-muted);
        font-size: 0.85rem;
      }

      .article-body h2 {
        margin: 0;
        font-size: 1.1rem;
      }

      .article-body h2 a {
        color: inherit;
        text-decoration: none;
      }

      .article-body h2 a:hover {
        color: var(--color-blue-4);
      }

      .article-body p {
        margin: 0;
        color: #4b5563;
        font-size: 0.95rem;
        line-height: 1.5;
      }

      .state {
        text-align: center;
        padding: 48px 16px;
        display: grid;
        gap: 12px;
        justify-items: center;
      }

      .state h3 {
        margin: 0;
      }

      .state p {
        margin: 0;
        color: var(--color-muted);
      }

      .state.error {
        background: var(--color-red-1);
        border-left: 4px solid var(--color-red-2);
        border-radius: 12px;
        color: var(--color-red-2);
      }

      footer {
        text-align: center;
        color: var(--color-muted);
        font-size: 0.85rem;
        border-top: 1px solid var(--color-border);
        padding-top: 24px;
      }

      [hidden] {
        display: none !important;
      }

      @media (max-width: 720px) {
        .stats {
          grid-template-columns: 1fr;
        }
      }
    </style>
  </head>
  <body>
    <div class="page">
      <header>
        <div>
          <h1>Welcome back, <span>{{USER_NAME}}</span></h1>
          <p>Here's what's happening today</p>
        </div>
        <a class="button" href="/logout" aria-label="Sign out">Sign Out</a>
      </header>

      <section class="stats">
        <div class="stat-card">
          <p>Total Articles</p>
          <strong id="stat-total">-</strong>
        </div>
        <div class="stat-card">
          <p>Last Updated</p>
          <strong id="stat-updated">-</strong>
        </div>
        <div class="stat-card">
          <p>News Sources</p>
          <strong id="stat-sources">-</strong>
        </div>
      </section>

      <section class="panel" aria-live="polite">
        <div class="toolbar">
          <input
            type="search"
            class="search-input"
            id="search-input"
            placeholder="Search articles by title or description..."
            aria-label="Search articles"
          />
          <div class="source-filters" id="source-filters"></div>
        </div>

        <div class="state" id="loading-state">
          <h3>Loading Dashboard</h3>
          <p>We're preparing your news feed</p>
        </div>

        <div class="state error" id="error-state" role="alert" hidden>
          <h3>Error loading content</h3>
          <p id="error-message">Failed to load news. Please try again later.</p>
          <button type="button" id="retry-button">Try Again</button>
        </div>

        <div class="state" id="empty-state" hidden>
          <h3>No articles found</h3>
          <p id="empty-message">Try selecting a different news source or check back later.</p>
          <button type="button" class="primary" id="clear-filters" hidden>Show All Articles</button>
        </div>

        <div class="articles" id="articles"></div>
      </section>

      <footer>
        <p id="footer-updated"></p>
      </footer>
    </div>

    <script>
      window.addEventListener("DOMContentLoaded", () => {
        const ALL_SOURCES = "all";
        const DEFAULT_IMAGE = "{{DEFAULT_IMAGE}}";

        const searchInput = document.getElementById("search-input");
        const sourceFilters = document.getElementById("source-filters");
        const articlesContainer = document.getElementById("articles");
        const loadingState = document.getElementById("loading-state");
        const errorState = document.getElementById("error-state");
        const errorMessage = document.getElementById("error-message");
        const emptyState = document.getElementById("empty-state");
        const emptyMessage = document.getElementById("empty-message");
        const clearFilters = document.getElementById("clear-filters");

        const state = {
          articles: [],
          activeSource: ALL_SOURCES,
          searchQuery: "",
        };

        const formatDate = (value) => {
          const date = new Date(value);
          if (!value || Number.isNaN(date.getTime())) {
            return "Date not available";
          }
          return date.toLocaleDateString("en-US", { month: "short", day: "numeric", year: "numeric" });
        };

        // Same semantics as newsdash.services.filters.view
        const view = (articles, sourceFilter, searchTerm) => {
          let result = articles;
          if (sourceFilter && sourceFilter !== ALL_SOURCES) {
            result = result.filter((article) => article.apiSource === sourceFilter);
          }
          if (searchTerm) {
            const query = searchTerm.toLowerCase();
            result = result.filter(
              (article) =>
                article.title.toLowerCase().includes(query) ||
                article.description.toLowerCase().includes(query),
            );
          }
          return result;
        };

        const buildCard = (article) => {
          const card = document.createElement("article");
          card.className = "article-card";

          const imageWrapper = document.createElement("div");
          imageWrapper.className = "image";
          const image = document.createElement("img");
          image.src = article.imageUrl || DEFAULT_IMAGE;
          image.alt = article.title;
          image.addEventListener("error", () => {
            if (!image.src.endsWith(DEFAULT_IMAGE)) {
              image.src = DEFAULT_IMAGE;
            }
          });
          const badge = document.createElement("span");
          badge.className = "badge";
          badge.textContent = article.apiSource;
          imageWrapper.append(image, badge);

          const body = document.createElement("div");
          body.className = "article-body";
          const meta = document.createElement("div");
          meta.className = "article-meta";
          meta.textContent = `${formatDate(article.publishedAt)} · ${article.sourceLabel}`;
          const heading = document.createElement("h2");
          const link = document.createElement("a");
          link.href = article.url;
          link.target = "_blank";
          link.rel = "noopener noreferrer";
          link.textContent = article.title;
          heading.appendChild(link);
          const description = document.createElement("p");
          description.textContent = article.description;
          body.append(meta, heading, description);

          card.append(imageWrapper, body);
          return card;
        };

        const renderSourceButtons = () => {
          const sources = [ALL_SOURCES, ...new Set(state.articles.map((article) => article.apiSource))];
          sourceFilters.innerHTML = "";
          sources.forEach((source) => {
            const button = document.createElement("button");
            button.type = "button";
            button.textContent = source === ALL_SOURCES ? "All" : source;
            button.classList.toggle("active", source === state.activeSource);
            button.addEventListener("click", () => {
              state.activeSource = source;
              render();
            });
            sourceFilters.appendChild(button);
          });
          document.getElementById("stat-sources").textContent = String(sources.length - 1);
        };

        const render = () => {
          const visible = view(state.articles, state.activeSource, state.searchQuery);
          renderSourceButtons();

          articlesContainer.innerHTML = "";
          visible.forEach((article) => articlesContainer.appendChild(buildCard(article)));

          const filtered = Boolean(state.searchQuery) || state.activeSource !== ALL_SOURCES;
          emptyState.hidden = visible.length > 0;
          clearFilters.hidden = !filtered;
          emptyMessage.textContent = state.searchQuery
            ? "Try a different search term or clear the search"
            : "Try selecting a different news source or check back later.";
        };

        const logPerformance = (articles, loadMs) => {
          const bySource = {};
          articles.forEach((article) => {
            bySource[article.apiSource] = (bySource[article.apiSource] || 0) + 1;
          });
          const withImage = articles.filter((article) => article.imageUrl !== DEFAULT_IMAGE).length;
          console.log("Data Loading Time:", loadMs.toFixed(2), "ms");
          console.log("Articles by Source:", bySource);
          console.log(
            "Articles with Images:",
            articles.length ? ((withImage / articles.length) * 100).toFixed(2) + "%" : "n/a",
          );
          console.log("Total Data Size:", (JSON.stringify(articles).length / 1024).toFixed(2), "KB");
        };

        const publishedTime = (article) => {
          const time = Date.parse(article.publishedAt || "");
          return Number.isNaN(time) ? -Infinity : time;
        };

        // Newest first; undated articles last, ties keep their incoming order.
        const sortByRecency = (articles) =>
          articles
            .map((article, index) => ({ article, index, time: publishedTime(article) }))
            .sort((a, b) => (b.time === a.time ? a.index - b.index : b.time > a.time ? 1 : -1))
            .map(({ article }) => article);

        const loadNews = async () => {
          const started = performance.now();
          try {
            const sourcesResponse = await fetch("/api/sources");
            if (!sourcesResponse.ok) {
              throw new Error(`Failed to load news sources (${sourcesResponse.status})`);
            }
            const sources = (await sourcesResponse.json()).sources ?? [];

            const responses = await Promise.all(
              sources.map((source) => fetch(`/api/news?source=${encodeURIComponent(source.slug)}`)),
            );
            if (responses.some((response) => !response.ok)) {
              throw new Error("Failed to fetch news from one or more sources");
            }
            const payloads = await Promise.all(responses.map((response) => response.json()));

            state.articles = sortByRecency(
              payloads.flatMap((articles, index) =>
                articles.map((article) => ({ ...article, apiSource: sources[index].name })),
              ),
            );

            const updated = new Date();
            document.getElementById("stat-total").textContent = String(state.articles.length);
            document.getElementById("stat-updated").textContent = updated.toLocaleTimeString([], {
              hour: "2-digit",
              minute: "2-digit",
            });
            document.getElementById("footer-updated").textContent = `Last updated: ${updated.toLocaleString()}`;

            logPerformance(state.articles, performance.now() - started);
            render();
          } catch (error) {
            console.error("Error fetching news:", error);
            errorMessage.textContent = "Failed to load news. Please try again later.";
            errorState.hidden = false;
          } finally {
            loadingState.hidden = true;
          }
        };

        searchInput.addEventListener("input", (event) => {
          state.searchQuery = event.target.value;
          render();
        });

        clearFilters.addEventListener("click", () => {
          state.searchQuery = "";
          state.activeSource = ALL_SOURCES;
          searchInput.value = "";
          render();
        });

        document.getElementById("retry-button").addEventListener("click", () => {
          window.location.reload();
        });

        loadNews();
      });
    </script>
  </body>
</html>
"""

DEFAULT_IMAGE_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="640" height="360" viewBox="0 0 640 360">
  <rect width="640" height="360" fill="#e5e7eb"/>
  <rect x="220" y="110" width="200" height="140" rx="12" fill="#d1d5db"/>
  <rect x="245" y="140" width="150" height="14" rx="7" fill="#9ca3af"/>
  <rect x="245" y="170" width="110" height="10" rx="5" fill="#9ca3af"/>
  <rect x="245" y="192" width="130" height="10" rx="5" fill="#9ca3af"/>
  <rect x="245" y="214" width="90" height="10" rx="5" fill="#9ca3af"/>
</svg>
"""


def render_dashboard(user_name: str) -> str:
    return DASHBOARD_HTML.replace("{{USER_NAME}}", html.escape(user_name)).replace(
        "{{DEFAULT_IMAGE}}", DEFAULT_IMAGE_PATH
    )


def create_app(settings: AuthSettings | None = None) -> FastAPI:
    auth_settings = settings or AuthSettings.from_env()

    app = FastAPI(title="News Dashboard", description="Aggregated headlines from three news APIs")
    app.add_middleware(SessionMiddleware, secret_key=auth_settings.session_secret, same_site="lax")
    app.include_router(router, prefix="/api")
    app.include_router(auth_router)

    @app.get("/", include_in_schema=False)
    async def index() -> RedirectResponse:
        return RedirectResponse("/dashboard", status_code=303)

    @app.get("/login", response_class=HTMLResponse)
    async def login(request: Request) -> Response:
        if current_user(request) is not None:
            return RedirectResponse("/dashboard", status_code=303)
        return HTMLResponse(LOGIN_HTML)

    @app.get("/dashboard", response_class=HTMLResponse)
    async def dashboard(request: Request) -> Response:
        user = current_user(request)
        if user is None:
            return RedirectResponse("/login", status_code=303)
        return HTMLResponse(render_dashboard(user.name))

    @app.get(DEFAULT_IMAGE_PATH, include_in_schema=False)
    async def default_image() -> Response:
        return Response(DEFAULT_IMAGE_SVG, media_type="image/svg+xml")

    return app


app = create_app()

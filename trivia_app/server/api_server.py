"""FastAPI server that exposes the player game and the TV leaderboard."""

from __future__ import annotations

from dataclasses import asdict
import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from trivia_app.config import Settings
from trivia_app.constants.about import APP_NAME, APP_VERSION
from trivia_app.constants.leaderboard_constants import (
    LEADERBOARD_MAX_ENTRIES,
    PLAYER_LEADERBOARD_SIZE,
    TV_REFRESH_INTERVAL_MS,
)
from trivia_app.constants.quiz_constants import QUESTION_TIME_LIMIT_SECONDS
from trivia_app.core.markdown_renderer import renderer
from trivia_app.core.models import RankedEntry, format_timestamp
from trivia_app.core.question_selection import InsufficientQuestionsError
from trivia_app.core.services.game_flow import GameFlow, GameFlowRegistry, GameScreen
from trivia_app.core.services.leaderboard import Leaderboard
from trivia_app.core.services.quiz_session import QuestionView
from trivia_app.core.session_identity import SessionIdentityService

logger = logging.getLogger(__name__)


def _ensure_session(
    request: Request,
    response: Response,
    identity: SessionIdentityService,
    settings: Settings,
) -> str:
    session_id, created = identity.ensure(request.cookies.get(settings.cookie_name))
    if created:
        response.set_cookie(
            key=settings.cookie_name,
            value=session_id,
            max_age=60 * 60 * 24 * settings.cookie_max_age_days,
            samesite="lax",
            httponly=True,
        )
    return session_id


_PLAYER_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Trivia</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; max-width: 48rem; margin-inline: auto; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .primary-button { border: none; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; }
      .primary-button:disabled { opacity: 0.6; cursor: not-allowed; }
      .secondary-button { border: 1px solid #1f9aa5; border-radius: 0.75rem; padding: 0.85rem 1.5rem; font-size: 1rem; background: transparent; color: #f5f7ff; cursor: pointer; }
      input[type=text] { width: 100%; box-sizing: border-box; padding: 0.75rem; font-size: 1rem; border-radius: 0.5rem; border: 1px solid #334155; background: #0b1120; color: #f5f7ff; }
      .options-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 0.75rem; }
      .option-button { border: 2px solid transparent; border-radius: 0.75rem; padding: 1rem; font-size: 1rem; background: #1f9aa5; color: #fff; cursor: pointer; text-align: left; }
      .option-button:disabled { cursor: not-allowed; }
      .option-button.eliminated { opacity: 0.25; text-decoration: line-through; }
      .option-button.glow { border-color: #facc15; box-shadow: 0 0 1rem #facc15; }
      .option-button.correct { background: #15803d; }
      .option-button.wrong { background: #b91c1c; }
      .meta { display: flex; justify-content: space-between; color: #94a3b8; font-size: 0.95rem; }
      .timer-track { width: 100%; height: 0.6rem; background: rgba(250, 204, 21, 0.25); border-radius: 999px; overflow: hidden; margin: 0.75rem 0; }
      #timer-fill { height: 100%; background: #facc15; transition: width 200ms linear; }
      #timer-fill.warning { background: #f87171; }
      .error { color: #f87171; min-height: 1.25rem; }
      .notice { color: #facc15; }
      table { width: 100%; border-collapse: collapse; }
      td, th { padding: 0.4rem; text-align: left; border-bottom: 1px solid #1e293b; }
      .review-item { margin-bottom: 0.75rem; }
      .review-item.ok { color: #4ade80; }
      .review-item.bad { color: #f87171; }
    </style>
  </head>
  <body>
    <section class="card" id="screen-splash">
      <h1>Trivia Challenge</h1>
      <p>Seven questions. Sixty seconds each. How far can you go?</p>
      <button class="primary-button" data-action="/continue">Start</button>
    </section>
    <section class="card hidden" id="screen-rules">
      <h2>Rules</h2>
      <ul>
        <li>Each question has a 60 second countdown.</li>
        <li>Your first answer is final. Running out of time counts as wrong.</li>
        <li>Only your first attempt goes on the leaderboard.</li>
        <li>Later attempts earn hints that remove wrong options or highlight the right one.</li>
      </ul>
      <button class="primary-button" data-action="/continue">Got it</button>
    </section>
    <section class="card hidden" id="screen-name_entry">
      <h2>What's your name?</h2>
      <form id="name-form">
        <input type="text" id="name-input" maxlength="20" autocomplete="off" />
        <p class="error" id="name-error"></p>
        <button class="primary-button" type="submit">Play</button>
      </form>
    </section>
    <section class="card hidden" id="screen-quiz">
      <div class="meta"><span id="quiz-progress"></span><span id="quiz-score"></span></div>
      <div class="timer-track"><div id="timer-fill"></div></div>
      <div class="meta"><span id="quiz-timer"></span><span id="quiz-hints"></span></div>
      <div id="question-container"></div>
      <div id="options-container" class="options-grid"></div>
      <p id="quiz-status"></p>
      <button class="secondary-button hidden" id="hint-button">Use a hint</button>
    </section>
    <section class="card hidden" id="screen-results">
      <h2 id="results-title"></h2>
      <p id="results-score"></p>
      <p id="results-message"></p>
      <p class="notice" id="results-notice"></p>
      <div id="results-review"></div>
      <button class="primary-button" data-action="/leaderboard/show">Leaderboard</button>
      <button class="secondary-button" data-action="/play-again">Play again</button>
      <button class="secondary-button" data-action="/restart">Home</button>
    </section>
    <section class="card hidden" id="screen-leaderboard">
      <h2>Leaderboard</h2>
      <table><thead><tr><th>#</th><th>Name</th><th>Score</th><th>%</th><th></th></tr></thead><tbody id="leaderboard-body"></tbody></table>
      <button class="primary-button" data-action="/leaderboard/back">Back to results</button>
    </section>
    <p class="error" id="global-error"></p>
    <script>
      const screens = ['splash', 'rules', 'name_entry', 'quiz', 'results', 'leaderboard'];
      let currentScreen = null;
      let lastEvent = 0;
      let leaderboardLoaded = false;

      function escapeHtml(text) {
        const div = document.createElement('div');
        div.textContent = text;
        return div.innerHTML;
      }

      function show(screen) {
        screens.forEach(name => {
          document.getElementById('screen-' + name).classList.toggle('hidden', name !== screen);
        });
        if (screen !== currentScreen) {
          leaderboardLoaded = false;
        }
        currentScreen = screen;
      }

      async function post(path, body) {
        const response = await fetch(path, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body ? JSON.stringify(body) : null,
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          throw new Error(payload.detail ?? 'Request failed.');
        }
        return payload;
      }

      function renderQuiz(quiz) {
        document.getElementById('quiz-progress').textContent = 'Question ' + (quiz.index + 1) + ' of ' + quiz.total;
        document.getElementById('quiz-score').textContent = 'Score: ' + quiz.score;
        document.getElementById('quiz-timer').textContent = quiz.seconds_left + 's';
        document.getElementById('quiz-hints').textContent = quiz.attempt_number > 1 ? 'Hints: ' + quiz.hints_remaining : '';
        const fill = document.getElementById('timer-fill');
        fill.style.width = Math.max(0, quiz.seconds_left / quiz.duration * 100) + '%';
        fill.classList.toggle('warning', quiz.seconds_left <= 10);
        document.getElementById('question-container').innerHTML = quiz.question_html;
        const container = document.getElementById('options-container');
        container.innerHTML = '';
        quiz.options_html.forEach((optionHtml, index) => {
          const button = document.createElement('button');
          button.className = 'option-button';
          button.innerHTML = String.fromCharCode(65 + index) + '. ' + optionHtml;
          const eliminated = quiz.eliminated.includes(index);
          button.disabled = quiz.locked || eliminated;
          if (eliminated) button.classList.add('eliminated');
          if (quiz.glow_index === index) button.classList.add('glow');
          if (quiz.locked && quiz.correct_index === index) button.classList.add('correct');
          if (quiz.locked && quiz.selected === index && quiz.selected !== quiz.correct_index) button.classList.add('wrong');
          button.addEventListener('click', () => post('/answer', { option_index: index }).then(refresh).catch(showError));
          container.appendChild(button);
        });
        let status = '';
        if (quiz.locked) {
          if (quiz.timed_out) status = 'Time is up!';
          else status = quiz.selected === quiz.correct_index ? 'Correct!' : 'Wrong answer.';
        }
        document.getElementById('quiz-status').textContent = status;
        document.getElementById('hint-button').classList.toggle('hidden', !quiz.hint_available);
      }

      function renderResults(results, notice) {
        document.getElementById('results-title').textContent = results.title;
        document.getElementById('results-score').textContent = results.player_name + ': ' + results.score + ' / ' + results.total + ' (' + results.percentage + '%)';
        document.getElementById('results-message').textContent = results.message;
        document.getElementById('results-notice').textContent = notice ?? '';
        const review = document.getElementById('results-review');
        review.innerHTML = results.lines.map((line, index) => {
          let answer = 'Not answered';
          if (line.user_answer === -1) answer = 'Time ran out';
          else if (line.user_answer !== null) answer = line.options[line.user_answer];
          return '<div class="review-item ' + (line.is_correct ? 'ok' : 'bad') + '">' + (index + 1) + '. ' + escapeHtml(line.question_text)
            + '<br/>Your answer: ' + escapeHtml(answer) + ' | Correct: ' + escapeHtml(line.options[line.correct_answer]) + '</div>';
        }).join('');
      }

      async function loadLeaderboard() {
        leaderboardLoaded = true;
        const response = await fetch('/leaderboard?limit=20');
        const payload = await response.json();
        const body = document.getElementById('leaderboard-body');
        body.innerHTML = '';
        payload.entries.forEach(entry => {
          const row = document.createElement('tr');
          row.innerHTML = '<td>' + entry.rank + '</td><td>' + escapeHtml(entry.name) + '</td><td>' + entry.score + '/' + entry.total_questions + '</td><td>' + entry.percentage + '%</td><td></td>';
          if (entry.own) {
            const remove = document.createElement('button');
            remove.className = 'secondary-button';
            remove.textContent = 'Delete';
            remove.addEventListener('click', async () => {
              await fetch('/leaderboard/' + entry.id, { method: 'DELETE' });
              loadLeaderboard();
            });
            row.lastChild.appendChild(remove);
          }
          body.appendChild(row);
        });
      }

      function showError(error) {
        document.getElementById('global-error').textContent = error.message;
      }

      async function refresh() {
        try {
          const response = await fetch('/state?after=' + lastEvent);
          const state = await response.json();
          if (state.events.length) lastEvent = state.events[state.events.length - 1].sequence;
          show(state.screen);
          if (state.screen === 'quiz' && state.quiz) renderQuiz(state.quiz);
          if ((state.screen === 'results' || state.screen === 'leaderboard') && state.results) renderResults(state.results, state.save_notice);
          if (state.screen === 'leaderboard' && !leaderboardLoaded) loadLeaderboard();
          document.getElementById('global-error').textContent = '';
        } catch (error) {
          document.getElementById('global-error').textContent = 'Unable to reach the game server.';
        }
      }

      document.querySelectorAll('[data-action]').forEach(button => {
        button.addEventListener('click', () => post(button.dataset.action).then(refresh).catch(showError));
      });
      document.getElementById('hint-button').addEventListener('click', () => post('/hint').then(refresh).catch(showError));
      document.getElementById('name-form').addEventListener('submit', event => {
        event.preventDefault();
        const name = document.getElementById('name-input').value;
        post('/name', { player_name: name })
          .then(() => { document.getElementById('name-error').textContent = ''; refresh(); })
          .catch(error => { document.getElementById('name-error').textContent = error.message; });
      });

      fetch('/identity').then(refresh);
      setInterval(refresh, 500);
    </script>
  </body>
</html>
"""

_TV_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Trivia Leaderboard</title>
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0; padding: 3rem; }
      h1 { font-size: 3rem; text-align: center; }
      table { width: 100%; border-collapse: collapse; font-size: 2rem; }
      td, th { padding: 0.75rem; border-bottom: 1px solid #1e293b; }
      tr.top td { color: #facc15; }
      #updated { text-align: center; color: #94a3b8; }
    </style>
  </head>
  <body>
    <h1>Top Scores</h1>
    <table><tbody id="tv-body"></tbody></table>
    <p id="updated"></p>
    <script>
      async function refresh() {
        try {
          const response = await fetch('/leaderboard?limit=10');
          const payload = await response.json();
          const body = document.getElementById('tv-body');
          body.innerHTML = '';
          payload.entries.forEach(entry => {
            const row = document.createElement('tr');
            if (entry.rank <= 3) row.className = 'top';
            [entry.rank, entry.name, entry.score + '/' + entry.total_questions, entry.percentage + '%'].forEach(value => {
              const cell = document.createElement('td');
              cell.textContent = value;
              row.appendChild(cell);
            });
            body.appendChild(row);
          });
          document.getElementById('updated').textContent = 'Updated ' + new Date().toLocaleTimeString();
        } catch (error) {
          document.getElementById('updated').textContent = 'Unable to reach the game server.';
        }
      }
      refresh();
      setInterval(refresh, __REFRESH_MS__);
    </script>
  </body>
</html>
""".replace("__REFRESH_MS__", str(TV_REFRESH_INTERVAL_MS))


class NamePayload(BaseModel):
    """Payload schema for starting a quiz."""

    player_name: str


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    option_index: int


def _serialize_view(view: QuestionView, duration: int) -> dict[str, object]:
    payload = asdict(view)
    payload["options"] = list(view.options)
    payload["eliminated"] = list(view.eliminated)
    payload["question_html"] = renderer.render_fragment(view.text)
    payload["options_html"] = [renderer.render_inline(option) for option in view.options]
    payload["duration"] = duration
    return payload


def _serialize_ranked(ranked: RankedEntry, session_id: str) -> dict[str, object]:
    entry = ranked.entry
    return {
        "rank": ranked.rank,
        "id": entry.id,
        "name": entry.name,
        "score": entry.score,
        "total_questions": entry.total_questions,
        "percentage": entry.percentage,
        "timestamp": format_timestamp(entry.timestamp),
        "own": bool(entry.session_id) and entry.session_id == session_id,
    }


def _run_action(action):
    """Call ``action`` and translate domain errors into HTTP errors."""
    try:
        return action()
    except InsufficientQuestionsError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


def create_api_app(
    registry: GameFlowRegistry,
    leaderboard: Leaderboard,
    identity: SessionIdentityService,
    settings: Settings,
    question_duration_seconds: int = QUESTION_TIME_LIMIT_SECONDS,
) -> FastAPI:
    """Create a FastAPI application wired to the provided game services."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)

    def session_dependency(request: Request, response: Response) -> str:
        return _ensure_session(request, response, identity, settings)

    def flow_dependency(session_id: str = Depends(session_dependency)) -> GameFlow:
        return registry.get_or_create(session_id)

    def state_payload(flow: GameFlow, after: int = 0) -> dict[str, object]:
        screen = flow.get_screen()
        payload: dict[str, object] = {
            "screen": screen.value,
            "quiz": None,
            "results": None,
            "save_state": flow.get_save_state().value,
            "save_notice": flow.get_save_notice(),
            "events": [
                {"sequence": e.sequence, "event": e.event.value, "question_index": e.question_index, "value": e.value}
                for e in flow.get_recent_events(after)
            ],
        }
        view = flow.get_quiz_view()
        if view is not None:
            payload["quiz"] = _serialize_view(view, question_duration_seconds)
        if screen in (GameScreen.RESULTS, GameScreen.LEADERBOARD):
            payload["results"] = asdict(flow.results())
        return payload

    @app.get("/", response_class=HTMLResponse)
    def serve_player_page() -> str:
        return _PLAYER_PAGE_HTML

    @app.get("/tv", response_class=HTMLResponse)
    def serve_tv_page() -> str:
        return _TV_PAGE_HTML

    @app.get("/identity")
    def get_identity(session_id: str = Depends(session_dependency)) -> dict[str, object]:
        return {"session_id": session_id}

    @app.get("/state")
    def get_state(
        after: int = Query(0, ge=0),
        flow: GameFlow = Depends(flow_dependency),
    ) -> dict[str, object]:
        return state_payload(flow, after)

    @app.post("/continue")
    def continue_intro(flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        screen = _run_action(flow.continue_intro)
        return {"screen": screen.value}

    @app.post("/name", status_code=201)
    def submit_name(payload: NamePayload, flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        started = _run_action(lambda: flow.submit_name(payload.player_name))
        return {"screen": flow.get_screen().value, **asdict(started)}

    @app.post("/answer")
    def submit_answer(payload: AnswerPayload, flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        accepted = _run_action(lambda: flow.answer(payload.option_index))
        return {"accepted": accepted}

    @app.post("/hint")
    def use_hint(flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        outcome = _run_action(flow.use_hint)
        if outcome is None:
            return {"used": False}
        return {
            "used": True,
            "kind": outcome.kind.value,
            "eliminated": list(outcome.eliminated),
            "glow_index": outcome.glow_index,
        }

    @app.post("/leaderboard/show")
    def show_leaderboard(flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        return {"screen": _run_action(flow.show_leaderboard).value}

    @app.post("/leaderboard/back")
    def back_to_results(flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        return {"screen": _run_action(flow.back_to_results).value}

    @app.post("/play-again")
    def play_again(flow: GameFlow = Depends(flow_dependency)) -> dict[str, object]:
        return {"screen": _run_action(flow.play_again).value}

    @app.post("/restart")
    def restart(session_id: str = Depends(session_dependency)) -> dict[str, object]:
        registry.restart(session_id)
        return {"screen": GameScreen.SPLASH.value}

    @app.get("/leaderboard")
    def get_leaderboard(
        limit: int = Query(PLAYER_LEADERBOARD_SIZE, ge=1, le=LEADERBOARD_MAX_ENTRIES),
        session_id: str = Depends(session_dependency),
    ) -> dict[str, object]:
        ranked = leaderboard.get_ranked(limit)
        return {"entries": [_serialize_ranked(item, session_id) for item in ranked]}

    @app.delete("/leaderboard/{entry_id}")
    def delete_leaderboard_entry(
        entry_id: int,
        session_id: str = Depends(session_dependency),
    ) -> dict[str, object]:
        if not leaderboard.delete_own_entry(entry_id, session_id):
            raise HTTPException(status_code=403, detail="You can only delete your own entries.")
        return {"deleted": entry_id}

    return app


def start_api_server(
    registry: GameFlowRegistry,
    leaderboard: Leaderboard,
    identity: SessionIdentityService,
    settings: Settings,
    question_duration_seconds: int = QUESTION_TIME_LIMIT_SECONDS,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(registry, leaderboard, identity, settings, question_duration_seconds)
    config = uvicorn.Config(
        app=app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="TriviaApiServer", daemon=True)
    thread.start()
    logger.info("Player API listening on %s:%d", settings.host, settings.port)
    return thread

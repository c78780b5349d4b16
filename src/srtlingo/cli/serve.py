"""srtlingo serve command — local web app for translating and previewing subtitles."""

from __future__ import annotations

import functools
import http.server
import json
import mimetypes
import urllib.parse
import webbrowser
from typing import Annotated, Optional

import typer

from srtlingo.core.config import load_config, validate_translation
from srtlingo.core.errors import ConfigError
from srtlingo.utils.console import console
from srtlingo.web.api import Api

MAX_BODY_BYTES = 20 * 1024 * 1024

PLAYER_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>srtlingo</title>
<style>
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { background: #1a1a2e; color: #e0e0e0; font-family: system-ui, sans-serif; }
  .container { max-width: 1200px; margin: 0 auto; padding: 20px; }
  h1 { font-size: 1.4rem; margin-bottom: 16px; color: #a0c4ff; }
  .row { display: flex; gap: 12px; flex-wrap: wrap; align-items: center; margin-bottom: 12px; }
  .panes { display: grid; grid-template-columns: 1fr 1fr; gap: 12px; }
  textarea {
    width: 100%; height: 320px; background: #16213e; color: #e0e0e0;
    border: 1px solid #334; border-radius: 6px; padding: 8px; font-family: monospace;
  }
  video { width: 100%; border-radius: 8px; background: #000; margin-top: 16px; }
  video::cue { font-size: 1.1rem; background: rgba(0,0,0,0.7); }
  button, select, input[type=text] {
    padding: 6px 14px; border-radius: 6px; background: #16213e; color: #e0e0e0;
    border: 1px solid #334; font-size: 0.9rem;
  }
  button:disabled { opacity: 0.5; }
  progress { width: 100%; height: 10px; }
  .status { font-size: 0.85rem; color: #aaa; margin: 8px 0; }
  .error { color: #ff8a8a; }
  .done { color: #7fdca4; }
  .movie { font-size: 0.85rem; color: #ccc; }
</style>
</head>
<body>
<div class="container">
  <h1>srtlingo</h1>
  <div class="row">
    <label>Subtitles <input type="file" id="srt-file" accept=".srt,text/plain"></label>
    <label>Video <input type="file" id="video-file" accept="video/*"></label>
    <input type="text" id="token" placeholder="Access token (optional)">
  </div>
  <div class="row">
    <input type="text" id="movie-query" placeholder="Movie title (year)">
    <button id="movie-search">Find movie</button>
    <span class="movie" id="movie-info"></span>
  </div>
  <div class="row">
    <select id="language"></select>
    <select id="preference">
      <option value="auto">auto</option>
      <option value="primary">primary</option>
      <option value="secondary">secondary</option>
    </select>
    <button id="translate">Translate</button>
    <button id="download" disabled>Download</button>
  </div>
  <progress id="progress" value="0" max="100"></progress>
  <div class="status" id="status"></div>
  <div class="panes">
    <textarea id="source" placeholder="Source SRT"></textarea>
    <textarea id="target" placeholder="Translation" readonly></textarea>
  </div>
  <video id="player" controls></video>
</div>
<script>
  const $ = (id) => document.getElementById(id);
  let movie = null, fileName = '', trackUrl = null;

  function headers() {
    const h = { 'Content-Type': 'application/json' };
    const token = $('token').value.trim();
    if (token) h['Authorization'] = 'Bearer ' + token;
    return h;
  }
  async function post(path, body) {
    const res = await fetch(path, { method: 'POST', headers: headers(), body: JSON.stringify(body) });
    return res.json();
  }
  function setStatus(text, cls) { $('status').textContent = text; $('status').className = 'status ' + (cls || ''); }

  fetch('/api/languages').then(r => r.json()).then(data => {
    for (const lang of data.languages) {
      const opt = document.createElement('option');
      opt.value = lang.label; opt.textContent = lang.label;
      if (lang.label === data.default) opt.selected = true;
      $('language').appendChild(opt);
    }
  });

  async function findMovie(query) {
    if (!query.trim()) return;
    const data = await post('/api/tmdb/search', { query });
    movie = data.ok ? data.first : null;
    $('movie-info').textContent = movie
      ? `${movie.title} (${(movie.release_date || '').slice(0, 4)})`
      : (data.error ? 'Could not find movie: ' + data.error : 'Could not find movie.');
  }
  $('movie-search').onclick = () => findMovie($('movie-query').value);

  $('srt-file').onchange = (e) => {
    const file = e.target.files[0];
    if (!file) return;
    const reader = new FileReader();
    reader.onload = async () => {
      $('source').value = reader.result; $('target').value = '';
      fileName = file.name;
      setStatus('Loaded ' + file.name);
      $('movie-query').value = file.name.replace(/\\.[^.]+$/, '').replace(/[_.]/g, ' ');
      const guess = await post('/api/guess-movie', { filename: file.name }).catch(() => null);
      if (guess && guess.ok && guess.guess.title) {
        const q = guess.guess.title + (guess.guess.year ? ` (${guess.guess.year})` : '');
        $('movie-query').value = q;
        await findMovie(q);
      }
    };
    reader.readAsText(file);
  };

  $('video-file').onchange = (e) => {
    const file = e.target.files[0];
    if (!file) return;
    if ($('player').src) URL.revokeObjectURL($('player').src);
    $('player').src = URL.createObjectURL(file);
  };

  async function showTrack(text) {
    const data = await post('/api/preview/vtt', { text });
    if (!data.ok) return;
    if (trackUrl) URL.revokeObjectURL(trackUrl);
    trackUrl = URL.createObjectURL(new Blob([data.vtt], { type: 'text/vtt' }));
    for (const t of $('player').querySelectorAll('track')) t.remove();
    const track = document.createElement('track');
    track.kind = 'subtitles'; track.label = $('language').value; track.src = trackUrl; track.default = true;
    $('player').appendChild(track);
  }

  $('translate').onclick = async () => {
    $('translate').disabled = true; $('download').disabled = true; $('target').value = '';
    $('progress').value = 0;
    const body = {
      text: $('source').value,
      targetLanguage: $('language').value,
      modelPreference: $('preference').value,
    };
    if (movie) {
      body.movieTitle = movie.title;
      body.movieYear = (movie.release_date || '').slice(0, 4) || undefined;
      body.movieOverview = movie.overview;
    }
    try {
      const res = await fetch('/api/translate', { method: 'POST', headers: headers(), body: JSON.stringify(body) });
      if (!res.ok) { const err = await res.json(); throw new Error(err.error || 'Translation failed'); }
      const reader = res.body.getReader();
      const decoder = new TextDecoder();
      let buffer = '';
      while (true) {
        const { value, done } = await reader.read();
        if (done) break;
        buffer += decoder.decode(value, { stream: true });
        let nl;
        while ((nl = buffer.indexOf('\\n')) >= 0) {
          const record = JSON.parse(buffer.slice(0, nl));
          buffer = buffer.slice(nl + 1);
          if (record.type === 'progress') {
            $('progress').value = Math.round(record.progress * 100);
            setStatus(record.message);
          } else if (record.type === 'result') {
            $('target').value = record.lines.join('\\n');
            if (record.ok) {
              setStatus(`Completed translation to ${record.targetLanguage} (${record.model})`, 'done');
              $('download').disabled = false;
              await showTrack($('target').value);
            } else {
              setStatus(record.error, 'error');
            }
          }
        }
      }
    } catch (err) {
      setStatus(err.message, 'error');
    } finally {
      $('translate').disabled = false;
    }
  };

  $('download').onclick = () => {
    const text = $('target').value;
    if (!text.trim()) return;
    const link = document.createElement('a');
    link.href = URL.createObjectURL(new Blob([text], { type: 'text/plain;charset=utf-8' }));
    link.download = (fileName.replace(/\\.srt$/i, '') || 'subtitles') + '-' + $('language').value + '.srt';
    link.click();
    URL.revokeObjectURL(link.href);
  };
</script>
</body>
</html>
"""


def serve(
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to serve on."),
    ] = None,
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Host to bind to."),
    ] = None,
    no_open: Annotated[
        bool,
        typer.Option("--no-open", help="Don't open browser automatically."),
    ] = False,
) -> None:
    """Serve the subtitle translation web app."""
    config = load_config(**{"server.port": port, "server.host": host})

    try:
        validate_translation(config)
        if config.auth.enabled:
            config.require("auth")
    except ConfigError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)

    api = Api.from_config(config)
    handler_class = functools.partial(_AppHandler, api=api)
    address = (config.server.host, config.server.port)
    server = http.server.ThreadingHTTPServer(address, handler_class)

    url = f"http://{config.server.host}:{config.server.port}"
    console.print(f"[bold green]Serving:[/bold green] {url}")
    console.print(f"[bold]Model:[/bold] {config.llm.model}")
    if config.llm.secondary_models:
        console.print(f"[bold]Fallback:[/bold] {', '.join(config.llm.secondary_models)}")
    if api.tmdb is None:
        console.print("[dim]TMDB not configured, movie lookup disabled[/dim]")
    if config.auth.enabled:
        console.print("[dim]Allow-list check enabled for API routes[/dim]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    if not no_open:
        webbrowser.open(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        console.print("\n[bold]Stopped.[/bold]")
    finally:
        server.server_close()


class _AppHandler(http.server.BaseHTTPRequestHandler):
    """Serve the player page, the JSON API, and stored subtitle files."""

    def __init__(self, *args, api: Api, **kwargs):
        self.api = api
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:
        path = urllib.parse.urlparse(self.path).path

        if path in ("/", "/index.html"):
            self._send_bytes(200, PLAYER_HTML.encode("utf-8"), "text/html; charset=utf-8")
        elif path.startswith("/api/"):
            self._dispatch("GET", path, b"")
        elif path.startswith(self.api.store.public_prefix + "/"):
            self._serve_stored(path[len(self.api.store.public_prefix) + 1 :])
        else:
            self.send_error(404)

    def do_POST(self) -> None:
        path = urllib.parse.urlparse(self.path).path
        length = int(self.headers.get("Content-Length") or 0)
        if length > MAX_BODY_BYTES:
            self._send_json(413, {"ok": False, "error": "Request body too large"})
            return
        self._dispatch("POST", path, self.rfile.read(length) if length else b"")

    def _dispatch(self, method: str, path: str, body: bytes) -> None:
        result = self.api.handle(method, path, body, self.headers.get("Authorization"))
        if result.stream is None:
            self._send_json(result.status, result.payload or {"ok": False})
            return

        # NDJSON stream: one record per line, flushed as produced
        self.send_response(result.status)
        self.send_header("Content-Type", "application/x-ndjson; charset=utf-8")
        self.send_header("Cache-Control", "no-cache")
        self.end_headers()
        try:
            for record in result.stream:
                self.wfile.write(json.dumps(record, ensure_ascii=False).encode("utf-8") + b"\n")
                self.wfile.flush()
        except (BrokenPipeError, ConnectionResetError):
            # Client went away; the job is abandoned between windows
            result.stream.close()
            console.print("[dim]Client disconnected, translation abandoned[/dim]")
        self.close_connection = True

    def _send_json(self, status: int, payload: dict) -> None:
        content = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self._send_bytes(status, content, "application/json; charset=utf-8")

    def _send_bytes(self, status: int, content: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def _serve_stored(self, rel_path: str) -> None:
        file_path = self.api.store.open(urllib.parse.unquote(rel_path))
        if file_path is None:
            self.send_error(404)
            return

        content_type, _ = mimetypes.guess_type(file_path.name)
        if file_path.suffix == ".srt" or content_type is None:
            content_type = "application/x-subrip"
        self.send_response(200)
        self.send_header("Content-Type", f"{content_type}; charset=utf-8")
        self.send_header("Content-Length", str(file_path.stat().st_size))
        self.send_header("Content-Disposition", f'attachment; filename="{file_path.name}"')
        self.end_headers()
        with open(file_path, "rb") as f:
            while chunk := f.read(1 << 20):  # 1 MB chunks
                self.wfile.write(chunk)

    def log_message(self, format, *args):
        """Suppress default access logs."""
        pass

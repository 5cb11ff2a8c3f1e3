"""Console viewer: a live mirror of a running killboard server."""

import logging

import click
import requests
import socketio

from killboard.services.broadcast import KINDS, DEATH_OCCURRED
from .mirror import ClientMirror, Views
from .overlay import DeathOverlay

logger = logging.getLogger(__name__)


class DashboardViewer:
    """Bootstraps over HTTP, then follows the /ws push channel.

    The baseline is fetched on every (re)connect: events sent while a
    viewer was disconnected are never replayed.
    """

    def __init__(self, base_url: str, session=None, sio=None, mirror=None, overlay=None, timeout: float = 5.0):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.sio = sio or socketio.Client(reconnection=True)
        self.mirror = mirror or ClientMirror()
        self.overlay = overlay or DeathOverlay()
        self.timeout = timeout
        self._stale = True
        self._register()

    def _get(self, path):
        resp = self.session.get(f"{self.base_url}/api{path}", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def bootstrap(self) -> Views:
        players = self._get('/players')
        deaths = self._get('/deaths/recent')
        return self.mirror.bootstrap(players, deaths)

    def handle(self, kind: str, payload) -> bool:
        changed = self.mirror.apply(kind, payload)
        if changed and kind == DEATH_OCCURRED:
            self.overlay.show(payload)
        return changed

    def _handler_for(self, kind):
        def _on(data=None):
            return self.handle(kind, data)
        return _on

    def _register(self):
        for kind in KINDS:
            self.sio.on(kind, self._handler_for(kind), namespace='/ws')
        self.sio.on('connect', self._on_connect, namespace='/ws')
        self.sio.on('disconnect', self._on_disconnect, namespace='/ws')

    def _on_connect(self):
        if self._stale:
            self.bootstrap()
            self._stale = False

    def _on_disconnect(self, *args):
        self._stale = True
        logger.info('[viewer] disconnected; baseline will be refetched on reconnect')

    def run(self) -> None:
        self.bootstrap()
        self._stale = False
        self.sio.connect(self.base_url, namespaces=['/ws'])
        self.sio.wait()


def render(views: Views) -> str:
    lines = [f"Players online: {views.player_count}", '', 'Top 3']
    for p in views.top_three:
        lines.append(f"  #{p['rank']} {p['name']:<16} {p.get('kills', 0):>4} kills")
    if views.ranks_four_to_ten:
        lines.append('Ranks 4-10')
        for p in views.ranks_four_to_ten:
            lines.append(f"  #{p['rank']:<2} {p['name']:<16} {p.get('kills', 0):>4} K {p.get('deaths', 0):>4} D")
    lines.append('')
    lines.append('Recent deaths')
    if not views.death_feed:
        lines.append('  (no deaths yet)')
    for d in views.death_feed[:10]:
        killer = f" {d['killer']}" if d['killer'] else ''
        lines.append(f"  {d['time']} {d['victim']} {d['text']}{killer}")
    return '\n'.join(lines)


@click.command('killboard-viewer')
@click.option('--url', default='http://localhost:5000', show_default=True, help='Killboard server base URL.')
def main(url):
    """Follow a killboard server from the terminal."""
    logging.basicConfig(level=logging.INFO)

    def on_show(event):
        killer = f" by {event['killer']}" if event.get('killer') else ''
        click.echo(f"\n*** {event['victim']} DIED{killer} ***\n")

    viewer = DashboardViewer(
        url,
        mirror=ClientMirror(on_change=lambda v: click.echo(render(v) + '\n')),
        overlay=DeathOverlay(on_show=on_show),
    )
    viewer.run()


if __name__ == '__main__':
    main()

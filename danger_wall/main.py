#!/usr/bin/env python3
"""
DANGER WALL - Terminal Typing Runner
=====================================
Type to outrun the wall. Survive frenzies and bosses.

Controls:
    letters     - Type the highlighted word
    BACKSPACE   - Fix a mistake
    SPACE/ENTER - Submit (frenzy words, boss limbs and defenses)
    TAB         - Switch branch word
    ESC         - Quit
"""

import logging
import math
import sys
import time

try:
    from blessed import Terminal
except ImportError:
    print("ERROR: 'blessed' library required. Install with: pip install blessed")
    sys.exit(1)

from .config import GameSettings
from .engine import (
    Renderer, FEVER_COLORS, GRAY_DARK, GRAY_DARKER, GRAY_LIGHT, GRAY_MED,
    ICE_BLUE, NEON_CYAN, NEON_GREEN, NEON_MAGENTA, NEON_ORANGE, NEON_RED,
    NEON_YELLOW, WHITE
)
from .game import (
    GameOrchestrator, PHASE_GAME_OVER, PHASE_PLAYING, PHASE_START
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_WIDTH = 80
MIN_HEIGHT = 24
FLASH_FRAMES = 60

TITLE_ART = [
    r" ___   _   _  _  ___ ___ ___  __      ___   _    _    ",
    r"|   \ /_\ | \| |/ __| __| _ \ \ \    / /_\ | |  | |   ",
    r"| |) / _ \| .` | (_ | _||   /  \ \/\/ / _ \| |__| |__ ",
    r"|___/_/ \_\_|\_|\___|___|_|_\   \_/\_/_/ \_\____|____|",
]

POWER_UP_LABELS = {
    'speed': ('SPD', NEON_YELLOW),
    'timeWarp': ('WARP', NEON_MAGENTA),
    'shield': ('SHLD', NEON_CYAN),
    'multiplier': ('x2', NEON_GREEN),
    'laserFocus': ('FOCUS', NEON_RED),
    'freeze': ('ICE', ICE_BLUE),
}

# Event type -> (message builder, color) for the flash line
EVENT_FLASHES = {
    'power_up_activated': (lambda d: f"{d['type'].upper()} ({d['rarity']})", NEON_CYAN),
    'frenzy_started': (lambda d: 'FRENZY! SPACE advances each word', NEON_MAGENTA),
    'frenzy_penalty': (lambda d: f"-{d['penalty_ms'] / 1000:.0f}s", NEON_RED),
    'frenzy_completed': (lambda d: f"FRENZY COMPLETE +{d['bonus']}", NEON_GREEN),
    'frenzy_timeout': (lambda d: 'FRENZY TIME OUT', NEON_ORANGE),
    'boss_countdown': (lambda d: f"{d['name']} - {d['description']}", NEON_RED),
    'boss_combat_started': (lambda d: 'FIGHT! Type limb words', NEON_RED),
    'limb_destroyed': (lambda d: 'COUNTER! +150' if d['countered'] else '+100', NEON_GREEN),
    'attack_blocked': (lambda d: f"BLOCKED +{d['score']}", NEON_CYAN),
    'special_move_blocked': (lambda d: f"CHANT COMPLETE +{d['score']}", NEON_CYAN),
    'attack_hit': (lambda d: f"{d['attack_name']} -{d['damage']} HP", NEON_RED),
    'boss_victory': (lambda d: f"VICTORY +{d['score'].total_score}", NEON_GREEN),
    'boss_timeout': (lambda d: f"BOSS ESCAPED +{d['score'].total_score}", NEON_ORANGE),
    'boss_defeat': (lambda d: 'DEFEATED', NEON_RED),
}


# =============================================================================
# SCREENS
# =============================================================================

def render_title_screen(renderer: Renderer, frame: int):
    art_y = renderer.height // 2 - 6
    for i, line in enumerate(TITLE_ART):
        renderer.centered(art_y + i, line, NEON_RED if i % 2 == 0 else NEON_ORANGE)

    renderer.centered(art_y + len(TITLE_ART) + 1, 'TYPE OR BE CRUSHED', GRAY_MED)

    if (frame // 30) % 2 == 0:
        renderer.centered(art_y + len(TITLE_ART) + 4, '[ PRESS ENTER TO START ]', NEON_GREEN)

    controls = [
        'type the highlighted word    TAB - switch word',
        'SPACE/ENTER - submit in frenzy and boss modes',
        'ESC - quit',
    ]
    for i, line in enumerate(controls):
        renderer.centered(art_y + len(TITLE_ART) + 6 + i, line, GRAY_DARK)

    renderer.box(0, 0, renderer.width, renderer.height, GRAY_DARKER, '.')


def render_game_over_screen(renderer: Renderer, stats, frame: int):
    mid = renderer.height // 2
    renderer.centered(mid - 5, 'G A M E   O V E R', NEON_RED)

    reason = {
        'danger_wall': 'The wall caught you.',
        'boss_defeat': 'The boss destroyed you.',
    }.get(stats.reason, stats.reason)
    renderer.centered(mid - 3, reason, GRAY_MED)

    lines = [
        f'FINAL SCORE: {stats.score:,}',
        f'BEST WPM: {stats.best_wpm}',
        f'WORDS TYPED: {stats.words_completed}',
    ]
    for i, line in enumerate(lines):
        renderer.centered(mid - 1 + i, line, NEON_YELLOW)

    if (frame // 30) % 2 == 0:
        renderer.centered(mid + 4, '[ ENTER - RESTART ]    [ ESC - QUIT ]', NEON_CYAN)


def render_hud(renderer: Renderer, snap):
    """Top rows: score line, fever meter, active power-ups."""
    run = snap.run
    renderer.text(1, 0, f'SCORE {run.score:,}', WHITE, shaken=False)
    renderer.text(22, 0, f'COMBO {run.combo}', NEON_YELLOW, shaken=False)
    renderer.text(36, 0, f'WPM {run.wpm}', NEON_CYAN, shaken=False)
    renderer.text(48, 0, f'POS {run.position_percent:3.0f}%', GRAY_LIGHT, shaken=False)

    fever = snap.fever
    color = FEVER_COLORS[fever.level]
    if fever.rush_active:
        label = f'FEVER RUSH x{fever.multiplier:g} {fever.rush_time_left / 1000:4.1f}s'
    else:
        label = f'{fever.level_name.upper()} x{fever.multiplier:g}'
    renderer.text(1, 1, label, color, shaken=False)
    renderer.meter(30, 1, min(40, renderer.width - 32), fever.heat_percent / 100, color)

    x = 1
    for pu in snap.power_ups:
        name, pu_color = POWER_UP_LABELS.get(pu.type, (pu.type, WHITE))
        left = f'{pu.remaining:.0f}w' if pu.usage_based else f'{pu.remaining / 1000:.1f}s'
        tag = f'[{name} {left}]'
        renderer.text(x, 2, tag, pu_color, shaken=False)
        x += len(tag) + 1


def render_walls(renderer: Renderer, snap, frame: int):
    """Danger wall on the left, safe wall on the right, player between."""
    top = renderer.hud_rows
    bottom = renderer.field_height
    glyphs = '▓▒░'
    for y in range(top, bottom):
        renderer.put(0, y, glyphs[(y + frame // 4) % 3], NEON_RED)
        renderer.put(1, y, glyphs[(y + frame // 4 + 1) % 3], NEON_ORANGE)
        renderer.put(renderer.width - 1, y, '│', NEON_GREEN)

    span = renderer.width - 5
    px = 2 + int(snap.run.position_percent / 100 * span)
    renderer.put(px, (top + bottom) // 2, '@', WHITE)


def render_normal_words(renderer: Renderer, snap):
    run = snap.run
    y = renderer.field_height - 3
    words = [
        (run.word1, run.power_up1, run.active_branch == 1),
        (run.word2, run.power_up2, run.active_branch == 2),
    ]
    for i, (word, power_up, active) in enumerate(words):
        x = renderer.width // 4 + i * renderer.width // 2 - len(word) // 2
        if active:
            renderer.text(x - 2, y, '>', NEON_CYAN, shaken=False)
            renderer.typed_word(x, y, word, run.current_input)
        else:
            renderer.text(x, y, word, GRAY_DARK, shaken=False)
        if power_up:
            name, color = POWER_UP_LABELS.get(power_up, (power_up, WHITE))
            renderer.text(x + len(word) + 1, y, f'<{name}>', color, shaken=False)


def render_frenzy(renderer: Renderer, snap):
    frenzy = snap.frenzy
    y = renderer.hud_rows + 2
    renderer.centered(y, 'F R E N Z Y', NEON_MAGENTA)
    renderer.centered(
        y + 1,
        f'{frenzy.time_remaining_seconds}s   {frenzy.current_wpm} WPM   '
        f'{frenzy.accuracy_percent}% ACC   {frenzy.word_index}/{frenzy.total_words}',
        GRAY_LIGHT,
    )

    sentence = ' '.join(frenzy.sentence_words)
    x = max(1, renderer.width // 2 - len(sentence) // 2)
    for i, word in enumerate(frenzy.sentence_words):
        if i < frenzy.word_index:
            renderer.text(x, y + 4, word, GRAY_DARK, shaken=False)
        elif i == frenzy.word_index:
            renderer.typed_word(x, y + 4, word, snap.run.current_input, NEON_YELLOW)
        else:
            renderer.text(x, y + 4, word, GRAY_LIGHT, shaken=False)
        x += len(word) + 1


def render_boss(renderer: Renderer, snap):
    boss = snap.boss
    cx = renderer.width // 2
    cy = (renderer.hud_rows + renderer.field_height) // 2
    rx = min(renderer.width // 3, 30)
    ry = max(3, (renderer.field_height - renderer.hud_rows) // 3)

    renderer.centered(renderer.hud_rows, boss.name, NEON_RED)
    hearts = '♥' * boss.hearts + '♡' * (5 - boss.hearts)
    renderer.centered(
        renderer.hud_rows + 1, f'{hearts}   {boss.time_remaining_seconds}s', NEON_RED
    )

    if boss.phase == 'countdown':
        renderer.centered(cy, 'GET READY', NEON_YELLOW)
        return

    renderer.put(cx, cy, '☠', NEON_RED)
    typed = snap.run.current_input
    for limb in boss.limbs:
        lx = cx + int(math.cos(limb.angle) * rx) - len(limb.word) // 2
        ly = cy + int(math.sin(limb.angle) * ry)
        if limb.destroyed:
            renderer.text(lx, ly, '-' * len(limb.word), GRAY_DARKER)
        elif typed and limb.word.startswith(typed):
            renderer.typed_word(lx, ly, limb.word, typed, GRAY_LIGHT, shaken=True)
        else:
            renderer.text(lx, ly, limb.word, GRAY_LIGHT)

    warning = boss.attack_warning
    if warning.active:
        y = renderer.field_height - 2
        seconds = f'{warning.countdown / 1000:.1f}s'
        if warning.is_special:
            renderer.centered(y - 1, f'!! SPECIAL MOVE !! {seconds}', NEON_MAGENTA)
            x = max(1, cx - len(warning.defense_word) // 2)
            renderer.typed_word(x, y, warning.defense_word, typed, NEON_MAGENTA)
        else:
            renderer.centered(
                y, f'!! ATTACK !! type {warning.defense_word.upper()}  {seconds}', NEON_ORANGE
            )


def render_input_line(renderer: Renderer, snap):
    y = renderer.height - 1
    renderer.text(0, y, '> ' + snap.run.current_input, WHITE, shaken=False)


# =============================================================================
# APP
# =============================================================================

class App:
    """Terminal shell around GameOrchestrator: keys in, frames out."""

    def __init__(self, term: Terminal, settings: GameSettings):
        self.term = term
        self.settings = settings
        self.renderer = Renderer(term)
        self.game = GameOrchestrator(settings)
        self.running = True
        self.frame = 0
        self.input_text = ''

        self.flash_text = ''
        self.flash_color = WHITE
        self.flash_timer = 0

    def handle_keys(self):
        """Drain all pending keystrokes."""
        key = self.term.inkey(timeout=0)
        while key:
            self._handle_key(key)
            if not self.running:
                return
            key = self.term.inkey(timeout=0)

    def _handle_key(self, key):
        name = key.name if key.is_sequence else None
        char = str(key)
        enter = name == 'KEY_ENTER' or char in ('\n', '\r')

        if name == 'KEY_ESCAPE':
            self.running = False
            return

        if self.game.phase in (PHASE_START, PHASE_GAME_OVER):
            if enter:
                self.game.start_game()
                self.input_text = ''
            return

        if name == 'KEY_TAB' or char == '\t':
            self.game.switch_branch()
        elif name in ('KEY_BACKSPACE', 'KEY_DELETE') or char in ('\x08', '\x7f'):
            self.input_text = self.input_text[:-1]
            self.game.handle_input(self.input_text)
        elif enter:
            self.game.submit()
        elif char == ' ':
            if self.game.accepts_spaces():
                self.input_text += ' '
                self.game.handle_input(self.input_text)
            else:
                self.game.submit()
        elif not key.is_sequence and char.isprintable():
            self.input_text += char
            self.game.handle_input(self.input_text)

        # The game may have consumed or sanitized the line
        self.input_text = self.game.snapshot().run.current_input

    def update(self, dt_ms: float):
        self.frame += 1
        if self.game.phase != PHASE_PLAYING:
            return

        self.game.tick(dt_ms)
        for event in self.game.drain_events():
            self._on_event(event)

        if self.flash_timer > 0:
            self.flash_timer -= 1
        self.input_text = self.game.snapshot().run.current_input

    def _on_event(self, event):
        if event.type == 'attack_hit':
            self.renderer.shake(strength=2 if event.data['is_special'] else 1, frames=10)

        flash = EVENT_FLASHES.get(event.type)
        if flash is not None:
            builder, color = flash
            self.flash_text = builder(event.data)
            self.flash_color = color
            self.flash_timer = FLASH_FRAMES

    def render(self):
        r = self.renderer
        r.begin_frame()

        if self.game.phase == PHASE_START:
            render_title_screen(r, self.frame)
        elif self.game.phase == PHASE_GAME_OVER:
            render_game_over_screen(r, self.game.game_over_stats, self.frame)
        else:
            snap = self.game.snapshot()
            render_hud(r, snap)
            render_walls(r, snap, self.frame)
            if snap.boss.active:
                render_boss(r, snap)
            elif snap.frenzy.active:
                render_frenzy(r, snap)
            else:
                render_normal_words(r, snap)
            if self.flash_timer > 0:
                r.centered(r.field_height, self.flash_text, self.flash_color)
            render_input_line(r, snap)

        output = r.end_frame()
        if output:
            print(output, end='', flush=True)


# =============================================================================
# MAIN LOOP
# =============================================================================

def configure_logging(settings: GameSettings):
    """Log to a file only; the terminal belongs to the game screen."""
    handlers = []
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    else:
        handlers.append(logging.NullHandler())
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def main():
    """Entry point. Sets up the terminal and runs the fixed-timestep loop."""
    settings = GameSettings()
    configure_logging(settings)

    term = Terminal()
    if term.width < MIN_WIDTH or term.height < MIN_HEIGHT:
        print(
            f'Terminal too small: {term.width}x{term.height}. '
            f'Minimum: {MIN_WIDTH}x{MIN_HEIGHT}'
        )
        sys.exit(1)

    frame_time = 1.0 / settings.target_fps
    logger.info("Starting", extra={'fps': settings.target_fps})

    with term.fullscreen(), term.cbreak(), term.hidden_cursor():
        app = App(term, settings)
        print(term.home + term.clear, end='', flush=True)

        last_time = time.perf_counter()
        accumulator = 0.0

        while app.running:
            now = time.perf_counter()
            delta = min(now - last_time, frame_time * 5)
            last_time = now
            accumulator += delta

            app.handle_keys()

            ticks = 0
            while accumulator >= frame_time and ticks < 4:
                app.update(frame_time * 1000.0)
                accumulator -= frame_time
                ticks += 1

            if (term.width, term.height) != (app.renderer.width, app.renderer.height):
                app.renderer.resize(term.width, term.height)
                print(term.home + term.clear, end='', flush=True)

            app.render()

            sleep_time = frame_time - (time.perf_counter() - now)
            if sleep_time > 0.001:
                time.sleep(sleep_time * 0.9)

        print(term.normal, end='', flush=True)

    logger.info("Exited")


if __name__ == '__main__':
    main()

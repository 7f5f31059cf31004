"""
Terminal Renderer
==================
Frame grid on top of blessed with changed-run output, plus the drawing
helpers the screens use (centered text, meters, boxes, screen shake).
"""

import random
from typing import List, Tuple

try:
    from blessed import Terminal
except ImportError:
    raise ImportError("'blessed' library required. Install with: pip install blessed")


# ANSI 256 colors
NEON_CYAN = 51
NEON_MAGENTA = 201
NEON_YELLOW = 226
NEON_GREEN = 46
NEON_RED = 196
NEON_ORANGE = 208
ICE_BLUE = 117

GRAY_LIGHT = 252
GRAY_MED = 245
GRAY_DARK = 238
GRAY_DARKER = 235

WHITE = 255
DEFAULT_FG = 7

# Fever level -> meter color
FEVER_COLORS = {
    0: GRAY_MED,
    1: NEON_YELLOW,
    2: NEON_ORANGE,
    3: NEON_RED,
    4: NEON_MAGENTA,
}

BLANK = (' ', DEFAULT_FG)

Grid = List[List[Tuple[str, int]]]


class Renderer:
    """
    Frame-level drawing API.

    Screens draw into a fresh grid each frame; end_frame() compares it with
    the grid already on screen and writes only the runs of cells that
    changed. Shake offsets apply to the play field only; HUD rows stay put.
    """

    def __init__(self, term: Terminal, hud_rows: int = 4):
        self.term = term
        self.hud_rows = hud_rows
        self.width = term.width
        self.height = term.height
        self._shown: Grid = self._blank()
        self._frame: Grid = self._blank()

        self.shake_frames = 0
        self.shake_strength = 1
        self.shake_x = 0
        self.shake_y = 0

    def _blank(self) -> Grid:
        return [[BLANK] * self.width for _ in range(self.height)]

    @property
    def field_height(self) -> int:
        return self.height - self.hud_rows

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height
        self._shown = self._blank()
        self._frame = self._blank()

    # -------------------------------------------------------------------------
    # Frame lifecycle
    # -------------------------------------------------------------------------

    def shake(self, strength: int = 1, frames: int = 6):
        self.shake_strength = strength
        self.shake_frames = max(self.shake_frames, frames)

    def _tick_shake(self):
        if self.shake_frames > 0:
            self.shake_x = random.randint(-self.shake_strength, self.shake_strength)
            self.shake_y = random.randint(-1, 1) if self.shake_strength > 1 else 0
            self.shake_frames -= 1
        else:
            self.shake_x = 0
            self.shake_y = 0

    def begin_frame(self):
        self._frame = self._blank()

    def end_frame(self) -> str:
        """Terminal output for every changed run, then the new frame becomes current."""
        self._tick_shake()
        out = []
        color = None
        for y, (row, shown) in enumerate(zip(self._frame, self._shown)):
            x = 0
            while x < self.width:
                if row[x] == shown[x]:
                    x += 1
                    continue
                out.append(self.term.move_xy(x, y))
                while x < self.width and row[x] != shown[x]:
                    char, fg = row[x]
                    if fg != color:
                        out.append(self.term.color(fg))
                        color = fg
                    out.append(char)
                    x += 1

        self._shown = self._frame
        if out:
            out.append(self.term.normal)
        return ''.join(out)

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def _set(self, x: int, y: int, char: str, fg: int):
        if 0 <= x < self.width and 0 <= y < self.height:
            self._frame[y][x] = (char, fg)

    def _offset(self, x: int, y: int, shaken: bool):
        if shaken and y < self.field_height:
            return x + self.shake_x, y + self.shake_y
        return x, y

    def put(self, x: int, y: int, char: str, fg: int = DEFAULT_FG, shaken: bool = True):
        x, y = self._offset(x, y, shaken)
        self._set(x, y, char, fg)

    def text(self, x: int, y: int, text: str, fg: int = DEFAULT_FG, shaken: bool = True):
        x, y = self._offset(x, y, shaken)
        for i, char in enumerate(text):
            self._set(x + i, y, char, fg)

    def centered(self, y: int, text: str, fg: int = DEFAULT_FG, shaken: bool = False):
        self.text(max(0, self.width // 2 - len(text) // 2), y, text, fg, shaken)

    def meter(self, x: int, y: int, width: int, fraction: float,
              fg: int = NEON_CYAN, empty_fg: int = GRAY_DARK):
        """Horizontal fill bar, fraction in [0, 1]."""
        filled = int(round(max(0.0, min(1.0, fraction)) * width))
        self.text(x, y, '█' * filled, fg, shaken=False)
        self.text(x + filled, y, '░' * (width - filled), empty_fg, shaken=False)

    def box(self, x: int, y: int, w: int, h: int, fg: int = GRAY_DARK, char: str = '#'):
        self.text(x, y, char * w, fg, shaken=False)
        self.text(x, y + h - 1, char * w, fg, shaken=False)
        for j in range(1, h - 1):
            self._set(x, y + j, char, fg)
            self._set(x + w - 1, y + j, char, fg)

    def typed_word(self, x: int, y: int, target: str, typed: str,
                   base_fg: int = GRAY_LIGHT, shaken: bool = False):
        """Draw a word with the typed prefix highlighted green, or red from the first mistake."""
        wrong = False
        for i, char in enumerate(target):
            if i < len(typed):
                wrong = wrong or typed[i] != char
                fg = NEON_RED if wrong else NEON_GREEN
            else:
                fg = base_fg
            self.put(x + i, y, char, fg, shaken)

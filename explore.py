import os
import queue
import sys
import threading
import time
import warnings

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import tkinter as tk

import PIL.Image
import PIL.ImageTk

from fractal import FractalExplorer, RenderResult, available_generators, new_generator
from fractal.explorer import ZOOM_SCALE
from fractal.generator import MAX_ITERATIONS
from fractal.renderer import BACKENDS

from argparse import ArgumentParser


def select_device():
    """Place the escape-time loop on the first GPU when one is visible."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


def build_parser():
    parser = ArgumentParser(description='Explore escape-time fractals. Click to zoom in, reset to start over.')

    parser.add_argument('--size', type=int,
                        dest='size', help='width and height of the square display in pixels',
                        metavar='SIZE', default=800)

    parser.add_argument('--fractal', type=str, choices=available_generators(),
                        dest='fractal', help='fractal family to explore',
                        default='mandelbrot')

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration budget before a point is treated as inside the set',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--zoom-scale', type=float,
                        dest='zoom_scale', help='factor applied to the view extent on each click. Choose < 1 to zoom in, > 1 to zoom out',
                        metavar='ZOOM_SCALE', default=ZOOM_SCALE)

    parser.add_argument('--backend', type=str, choices=BACKENDS,
                        dest='backend', help='"tensorflow" evaluates the grid vectorized; "python" scans pixel by pixel',
                        default='tensorflow')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def validate_options(opt, parser: ArgumentParser) -> None:
    if opt.size <= 0:
        parser.error("--size must be a positive number of pixels.")
    if opt.max_iterations <= 0:
        parser.error("--max-iterations must be positive.")
    if not opt.zoom_scale > 0:
        parser.error("--zoom-scale must be positive.")


class ExplorerWindow:
    """Tk glue: show the explorer's pixel buffer, forward clicks and resets.

    Renders run on a worker thread; finished frames come back to the Tk
    thread through a queue.
    """

    POLL_MS = 30

    def __init__(self, root: tk.Tk, explorer: FractalExplorer):
        self.root = root
        self.explorer = explorer
        self._frames: queue.Queue = queue.Queue()
        self._photo = None

        root.title("Fractal Explorer")
        self.display = tk.Label(root, borderwidth=0, background="black")
        self.display.pack(side=tk.TOP)
        self.display.bind("<Button-1>", self.on_click)

        reset_button = tk.Button(root, text="Reset Display", command=self.on_reset)
        reset_button.pack(side=tk.BOTTOM, fill=tk.X)

        root.resizable(False, False)
        root.after(self.POLL_MS, self._poll)

    def _submit(self, action, label):
        if self.explorer.rendering:
            log("render in progress, dropping %s" % label)
            return

        def work():
            started = time.perf_counter()
            result = action()
            if result is None:
                log("render in progress, dropped %s" % label)
                return
            log("%s rendered in %.2fs, range %s" % (label, time.perf_counter() - started, result.plane_range))
            self._frames.put(result)

        threading.Thread(target=work, daemon=True).start()

    def _poll(self):
        try:
            while True:
                self.show(self._frames.get_nowait())
        except queue.Empty:
            pass
        self.root.after(self.POLL_MS, self._poll)

    def show(self, result: RenderResult) -> None:
        self._photo = PIL.ImageTk.PhotoImage(PIL.Image.fromarray(result.pixels))
        self.display.configure(image=self._photo)

    def draw(self):
        self._submit(self.explorer.draw, "initial view")

    def on_reset(self):
        self._submit(self.explorer.reset, "reset")

    def on_click(self, event):
        size = self.explorer.display_size
        px = min(max(event.x, 0), size - 1)
        py = min(max(event.y, 0), size - 1)
        self._submit(lambda: self.explorer.click(px, py), "zoom at (%d, %d)" % (px, py))


def main():
    parser = build_parser()
    opt = parser.parse_args()
    validate_options(opt, parser)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    log("TensorFlow version: %s" % tf.__version__)
    device = select_device() if opt.backend == 'tensorflow' else None

    generator = new_generator(opt.fractal, max_iterations=opt.max_iterations)
    explorer = FractalExplorer(
        opt.size,
        generator,
        backend=opt.backend,
        device=device,
        zoom_scale=opt.zoom_scale,
    )
    log("exploring %r on a %dx%d display" % (generator, opt.size, opt.size))

    root = tk.Tk()
    window = ExplorerWindow(root, explorer)
    window.draw()
    root.mainloop()


if __name__ == '__main__':
    main()

# SPDX-License-Identifier: AGPL-3.0-only
import time
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from .cli import _load_config, cmd_check


def _watched_paths(args):
    paths = [Path(args.elements).resolve()]
    config = _load_config(args)
    if config.path is not None:
        paths.append(config.path.resolve())
    return paths


class CheckEventHandler(FileSystemEventHandler):
    def __init__(self, args, delay=0.5, check=cmd_check):
        self.args = args
        self.delay = delay
        self.check = check
        self.watched = set(_watched_paths(args))
        self.last_check = 0.0
        self.last_exit_code = None

    def on_modified(self, event):
        self._changed(event, event.src_path)

    def on_created(self, event):
        self._changed(event, event.src_path)

    def on_moved(self, event):
        # Editors that save by rename land the watched file at dest_path
        self._changed(event, event.dest_path)

    def _changed(self, event, path):
        if event.is_directory:
            return
        if Path(path).resolve() not in self.watched:
            return

        # Debounce
        now = time.time()
        if now - self.last_check < self.delay:
            return

        print(f"[watch] Change detected in {path}...")
        self.rerun()
        self.last_check = now

    def rerun(self):
        try:
            self.last_exit_code = self.check(self.args)
        except (OSError, ValueError, KeyError) as e:
            print(f"[error] Check failed: {e}")
            self.last_exit_code = 1
        return self.last_exit_code


def cmd_watch(args):
    """Watch the elements/config files and re-run the check on change."""
    handler = CheckEventHandler(args, delay=getattr(args, "delay", 0.5))
    dirs = sorted({str(p.parent) for p in handler.watched})

    print(f"[watch] Watching {', '.join(dirs)} for changes...")
    handler.rerun()

    observer = Observer()
    for d in dirs:
        observer.schedule(handler, d, recursive=False)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        observer.stop()
    observer.join()
    return 0

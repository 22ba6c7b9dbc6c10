import os
import subprocess
import sys

from .utils import prompt_yes_no

VENV_NAME = '.venv'


def venv_executable(venv_dir: str, name: str) -> str:
    """Path of ``name`` (``python``, ``pip``) inside ``venv_dir``."""
    if os.name == 'nt':
        return os.path.join(venv_dir, 'Scripts', f'{name}.exe')
    return os.path.join(venv_dir, 'bin', name)


def project_root() -> str:
    return os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def ensure_venv(venv_dir: str) -> None:
    if os.path.isdir(venv_dir):
        return
    print(f'No virtual environment found at {venv_dir}.')
    if not prompt_yes_no('Create it and install drive-folder-gallery with Chromium?'):
        print('Aborting. Create a virtual environment and install the project to continue.')
        sys.exit(1)
    print('Creating virtual environment...')
    subprocess.check_call([sys.executable, '-m', 'venv', venv_dir])


def main(args=None):
    """Create ``.venv``, install the project and Chromium, then relaunch the CLI.

    ``args`` are passed through to ``python -m drive_folder_gallery``.
    """
    root = project_root()
    venv_dir = os.path.join(root, VENV_NAME)
    ensure_venv(venv_dir)

    pip_exe = venv_executable(venv_dir, 'pip')
    if not os.path.isfile(pip_exe):
        print(f'No pip at {pip_exe}; the virtual environment looks broken.')
        sys.exit(1)

    if os.path.isfile(os.path.join(root, 'pyproject.toml')):
        print('Installing drive-folder-gallery...')
        subprocess.check_call([pip_exe, 'install', '-e', root])
    else:
        print('pyproject.toml not found; skipping dependency installation.')

    py_exe = venv_executable(venv_dir, 'python')
    print('Installing Chromium for Playwright...')
    subprocess.check_call([py_exe, '-m', 'playwright', 'install', 'chromium'])

    print('Launching drive_folder_gallery inside the virtual environment...')
    sys.exit(subprocess.call([py_exe, '-m', 'drive_folder_gallery', *(args or [])]))


if __name__ == '__main__':
    main(sys.argv[1:])

"""
Thin entrypoint used by the GitHub Action.

The action step runs `python bot.py`, so we just delegate to the runner,
which reads the event from GITHUB_EVENT_PATH and the inputs from INPUT_* vars.
"""
from toxicbot.runner import main


if __name__ == "__main__":
    main()

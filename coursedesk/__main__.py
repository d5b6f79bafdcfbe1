"""
`python -m coursedesk ...` behaves like the `coursedesk` console script.
"""

from coursedesk.cli import main

if __name__ == "__main__":
    main()

"""Run one ranking action locally and print the response.

    python main.py weekly
    python main.py country region=KR week=2025-01-06
    python main.py ingest platform=netflix region=KR
    python main.py rankings week=2025-01-06 platform=all
"""

import json
import sys

from rankboard.handler import lambda_handler


# parameter : command line words after the script name
# return : handler event, e.g. {"action": "country", "region": "KR"}
def parse_args(argv):
    event = {"action": argv[0] if argv else "weekly"}
    for arg in argv[1:]:
        key, _, value = arg.partition("=")
        event[key] = value
    return event


if __name__ == '__main__':
    result = lambda_handler(parse_args(sys.argv[1:]), None)
    print(result["statusCode"])
    print(json.dumps(json.loads(result["body"]), indent=2, ensure_ascii=False))

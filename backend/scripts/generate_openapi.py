"""Generate OpenAPI schema from the FastAPI app.

Prints the schema to stdout, or writes it to the path given as the first
argument.
"""

import json
import sys

from invoicing.main import app

if __name__ == "__main__":
    schema = json.dumps(app.openapi(), indent=2)
    if len(sys.argv) > 1:
        with open(sys.argv[1], "w") as f:
            f.write(schema + "\n")
    else:
        print(schema)

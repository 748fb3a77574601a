import json
import os
import tempfile


def load(filename):
    # loads the json content of a file
    # (error will be raised if file doesn't exist)

    with open(filename) as file:
        return json.load(file)


def save(filename, content={}):
    # saves the json content to a file, replacing the previous
    # content in one step

    directory = os.path.dirname(filename) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{os.path.basename(filename)}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w") as outfile:
            json.dump(
                content,
                outfile,
                indent=2,
                sort_keys=True,
            )
            outfile.write("\n")
            outfile.flush()
            os.fsync(outfile.fileno())
        os.replace(tmp_path, filename)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    return filename


def remove(filename):
    if os.path.exists(filename):
        os.remove(filename)

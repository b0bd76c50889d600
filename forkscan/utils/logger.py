import termtables

from .constants import LOGS_PATH
from .helpers import create_dirs

CYAN = "\033[96m"
BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"

BOLD = "\033[1m"

END = "\033[0m"

REPORT_HEADER = ["#", "Contract", "Status", "Diffs", "Size delta", "Note"]

STATUS_COLORS = {
    "IDENTICAL": GREEN,
    "EXPECTED": CYAN,
    "DIFFERENT": RED,
    "ERROR": RED,
    "NO CODE": YELLOW,
    "SKIPPED": YELLOW,
}


class Logger:
    def __init__(self, log_file):
        self.log_file = log_file

    # log to file
    def log(self, text):
        create_dirs(self.log_file)
        with open(self.log_file, mode="a") as logs:
            logs.write(text + "\n")

    # print to std out
    def stdout(self, text):
        print(text)

    def info(self, text, value=None):
        log_text = "🔵 [INFO] " + text
        stdout_text = self.hl(" 🔵 [INFO] ", BLUE) + text

        if value is not None:
            log_text = self.cln(log_text, value)
            stdout_text = self.cln(stdout_text, self.hl(value, BOLD))

        self.log(log_text)
        self.stdout(stdout_text)

    def okay(self, text, value=None):
        log_text = "🟢 [OKAY] " + text
        stdout_text = self.hl(" 🟢 [OKAY] ", GREEN) + text

        if value is not None:
            log_text += ": " + str(value)
            stdout_text += ": " + self.hl(value, BOLD)

        self.log(log_text)
        self.stdout(stdout_text)

    def warn(self, text, value=None):
        log_text = "🟠 [WARN] " + text
        stdout_text = self.hl(" 🟠 [WARN] ", YELLOW) + text

        if value is not None:
            log_text += ": " + str(value)
            stdout_text += ": " + self.hl(value, BOLD)

        self.log(log_text)
        self.stdout(stdout_text)

    def error(self, text, value=None):
        log_text = "🔴 [ERROR] " + text
        stdout_text = self.hl(" 🔴 [ERROR] ", RED) + text

        if value is not None:
            log_text += ": " + str(value)
            stdout_text += ": " + self.hl(value, BOLD)

        self.log(log_text)
        self.stdout(stdout_text)

    def differences(self, differences, limit):
        """Prints the first `limit` byte differences as `position: deployed -> reference`."""
        self.info("First differences (position: deployed -> reference)")
        for diff in differences[:limit]:
            position = f"{diff.position:>8}: "
            deployed = f"0x{diff.deployed}"
            reference = f"0x{diff.reference}"
            self.log(f"{position}{deployed} -> {reference}")
            self.stdout(
                f"{position}{self.hl(deployed, RED)} -> {self.hl(reference, GREEN)}"
            )
        if len(differences) > limit:
            hidden = f"{' ' * 10}... and {len(differences) - limit} more"
            self.log(hidden)
            self.stdout(hidden)

    def report_table(self, table):
        if not table:
            return

        log_table = termtables.to_string(
            table,
            header=REPORT_HEADER,
            style=termtables.styles.rounded_double,
        )
        self.log(log_table)

        stdout_table = [self.color_row(row) for row in table]
        table_colored_string = termtables.to_string(
            stdout_table,
            header=REPORT_HEADER,
            style=termtables.styles.rounded_double,
        )

        self.stdout(table_colored_string)

    def color_row(self, row):
        hlcolor = STATUS_COLORS.get(row[2], BOLD)
        return [self.hl(cell, hlcolor) for cell in row]

    def hl(self, text, color=BOLD):
        return f"{color}{text}{END}"

    def hlgreen(self, text):
        return self.hl(text, GREEN)

    def hlred(self, text):
        return self.hl(text, RED)

    def cln(self, text1, text2):
        return f"{text1}: {text2}"

    def divider(self):
        self.log(" - +" * 20)
        self.stdout((self.hlred(" -") + self.hlgreen(" +")) * 20)


logger = Logger(LOGS_PATH)

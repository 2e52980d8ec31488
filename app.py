import sys
from PyQt5.QtWidgets import QApplication
from PyQt5.QtGui import QFont
from location.config import LOG_LEVEL
from ui.main_window import MainWindow
from utils.logging_config import setup_logging


def main():
    setup_logging(LOG_LEVEL)

    app = QApplication(sys.argv)

    # Set global font
    font = QFont("Arial", 10)
    app.setFont(font)

    window = MainWindow()
    window.show()

    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())

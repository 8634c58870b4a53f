DARK_QSS = r"""
QWidget {
    background: #1e1e1e;
    color: #e6e6e6;
}

QLineEdit, QTextEdit, QListWidget {
    background: #252526;
    border: 1px solid #3a3a3a;
    border-radius: 6px;
    padding: 6px 8px;
    selection-background-color: #264f78;
    selection-color: #ffffff;
}

QPushButton {
    background: #2d2d30;
    border: 1px solid #3a3a3a;
    border-radius: 6px;
    padding: 6px 12px;
}

QPushButton:hover {
    background: #3a3a3d;
}

QPushButton:disabled {
    color: #777777;
}

QPushButton:checked {
    background: #264f78;
}
"""

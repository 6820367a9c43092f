import logging
import os
import sys

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QAction, QPixmap
from PyQt6.QtWidgets import (
    QApplication,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QSplitter,
    QStatusBar,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from macpaint_decoder import MacPaintImage, decode_macpaint_file, is_macpaint_file
from macpaint_utils import macpaint_to_qimage, save_macpaint_png


class ImageLabel(QLabel):
    # Custom signal: emit coordinates + gray value
    pixelHovered = pyqtSignal(int, int, int)

    def __init__(self):
        super().__init__()
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setStyleSheet("background-color: gray;")
        self.setMouseTracking(True)
        self.image = None  # QImage backing for pixel lookup

    def setImage(self, pixmap):
        self.setPixmap(pixmap)
        self.image = pixmap.toImage()

    def mouseMoveEvent(self, ev):
        assert ev is not None

        if self.image is not None and self.pixmap() is not None:
            scaled_pixmap = self.pixmap().scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )

            x_ratio = self.image.width() / scaled_pixmap.width()
            y_ratio = self.image.height() / scaled_pixmap.height()

            # Center offset
            x_offset = (self.width() - scaled_pixmap.width()) // 2
            y_offset = (self.height() - scaled_pixmap.height()) // 2

            x = int((ev.pos().x() - x_offset) * x_ratio)
            y = int((ev.pos().y() - y_offset) * y_ratio)

            if 0 <= x < self.image.width() and 0 <= y < self.image.height():
                self.pixelHovered.emit(
                    x, y, self.image.pixelColor(x, y).value()
                )
        super().mouseMoveEvent(ev)


class MacPaintInfoPanel(QWidget):
    """Widget to display MacBinary header information"""

    def __init__(self):
        super().__init__()
        self.setup_ui()

    def setup_ui(self):
        layout = QVBoxLayout(self)

        title = QLabel("<b>MacPaint Information</b>")
        layout.addWidget(title)

        self.header_text = QTextEdit()
        self.header_text.setReadOnly(True)
        layout.addWidget(QLabel("Header Information:"))
        layout.addWidget(self.header_text)

    def set_macpaint_info(self, image: MacPaintImage):
        """Update panel with MacBinary header information"""
        if image.header is None:
            self.header_text.setPlainText("No MacBinary header")
        else:
            self.header_text.setPlainText(str(image.header))


class ImageViewer(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("MacPaint Viewer")
        self.setGeometry(100, 100, 800, 600)
        self.macpaint_image = None

        # Create UI
        self.create_menu()
        self.create_central_widget()
        self.create_info_bar()

    def create_menu(self):
        menubar = self.menuBar()
        assert menubar is not None

        file_menu = menubar.addMenu("File")
        assert file_menu is not None

        open_action = QAction("Open New Image File", self)
        open_action.triggered.connect(self.open_image)
        file_menu.addAction(open_action)

        self.export_action = QAction("Export as PNG", self)
        self.export_action.triggered.connect(self.export_png)
        self.export_action.setEnabled(False)
        file_menu.addAction(self.export_action)

    def create_central_widget(self):
        central_widget = QWidget()
        layout = QVBoxLayout(central_widget)

        self.splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left side: image viewer
        self.image_label = ImageLabel()
        self.image_label.pixelHovered.connect(self.update_info_bar)
        self.splitter.addWidget(self.image_label)

        # Right side: MacPaint info panel (initially hidden)
        self.info_panel = MacPaintInfoPanel()
        self.info_panel.hide()
        self.splitter.addWidget(self.info_panel)

        # Set initial sizes (70% image, 30% info)
        self.splitter.setSizes([700, 300])

        layout.addWidget(self.splitter)
        self.setCentralWidget(central_widget)

    def create_info_bar(self):
        self.info_bar = QStatusBar()
        self.info_bar.showMessage("Ready")
        self.setStatusBar(self.info_bar)

    def open_image(self):
        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Open New Image File",
            "",
            "Image files"
            "(*.mac *.MAC *.pntg *.pnt *.png *.jpg *.jpeg *.gif *.bmp)"
            ";;All files (*)",
        )

        if not file_path:
            return

        try:
            if is_macpaint_file(file_path):
                self.open_macpaint_file(file_path)
            else:
                # Load regular image
                self.info_panel.hide()
                self.macpaint_image = None
                self.export_action.setEnabled(False)
                self.show_pixmap(QPixmap(file_path))

                self.setWindowTitle(
                    f"MacPaint Viewer - {os.path.basename(file_path)}"
                )
        except Exception as e:
            QMessageBox.critical(
                self,
                "Error",
                f"Failed to open image: {str(e)}",
            )

    def open_macpaint_file(self, file_path: str):
        """Load and display a MacPaint file with info panel"""
        try:
            image = decode_macpaint_file(file_path)
            self.show_pixmap(QPixmap.fromImage(macpaint_to_qimage(image)))

            self.macpaint_image = image
            self.export_action.setEnabled(True)

            self.info_panel.set_macpaint_info(image)
            self.info_panel.show()

            self.setWindowTitle(
                f"MacPaint Viewer - {os.path.basename(file_path)}"
            )

        except Exception as e:
            raise Exception(f"Failed to load MacPaint file: {e}")

    def show_pixmap(self, pixmap):
        # Scale image to fit within the window while maintaining
        # aspect ratio
        scaled_pixmap = pixmap.scaled(
            self.image_label.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        self.image_label.setImage(scaled_pixmap)

    def export_png(self):
        if self.macpaint_image is None:
            return

        file_path, _ = QFileDialog.getSaveFileName(
            self, "Export as PNG", "", "PNG files (*.png)"
        )
        if not file_path:
            return

        try:
            save_macpaint_png(self.macpaint_image, file_path)
            self.info_bar.showMessage(f"Saved {file_path}")
        except Exception as e:
            QMessageBox.critical(self, "Error", f"Failed to export: {e}")

    def update_info_bar(self, x, y, value):
        self.info_bar.showMessage(f"X:{x}, Y:{y}  Value:{value}")


def main():
    logging.basicConfig(level=logging.INFO)
    app = QApplication(sys.argv)
    viewer = ImageViewer()
    viewer.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()

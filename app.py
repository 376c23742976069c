"""
Gradio web interface for gender, age group and expression prediction.

Run with: python app.py
"""

import os
from typing import Optional

import gradio as gr
import numpy as np

# Check if running in HF Spaces
IS_HF_SPACE = os.environ.get("SPACE_ID") is not None

# Import our modules (after env check)
from src.face_attributes import (  # noqa: E402
    Config,
    DirectoryArtifactProvider,
    FaceAttributePredictor,
)
from src.face_attributes.config import EVAL_IMAGES  # noqa: E402
from src.face_attributes.errors import PipelineError  # noqa: E402
from src.face_attributes.preprocessing import load_image  # noqa: E402

IDLE_TEXT = "Tap the button to run the model."

config = Config(
    image_dir=os.environ.get("FACE_ATTRIBUTES_IMAGE_DIR", "./assets/images"),
    model_dir=os.environ.get("FACE_ATTRIBUTES_MODEL_DIR", "./assets/models"),
)
provider = DirectoryArtifactProvider(config.image_dir, config.model_dir, config.model_ext)
predictor = FaceAttributePredictor(provider=provider, config=config)

image_names = provider.list_images() or EVAL_IMAGES


def show_image(index: int) -> tuple[str, Optional[np.ndarray], str]:
    """Load the image at an index of the evaluation set for display."""
    name = image_names[index]
    try:
        preview = np.asarray(load_image(provider.load_image(name)).convert("RGB"))
    except PipelineError:
        preview = None
    return f"### Image: {name}", preview, IDLE_TEXT


def run_model(index: int) -> str:
    """Run all three models on the current evaluation image."""
    return predictor.predict(image_names[index]).message


def next_image(index: int) -> tuple[int, str, Optional[np.ndarray], str]:
    """Advance to the next evaluation image, wrapping around."""
    index = (index + 1) % len(image_names)
    return (index, *show_image(index))


def run_upload(image: Optional[np.ndarray]) -> str:
    """Run all three models on an uploaded image."""
    if image is None:
        return "Please upload an image"
    return predictor.predict_image(image, image_name="upload").message


def create_demo() -> gr.Blocks:
    """Create the Gradio demo interface."""

    css = """
    .gradio-container {
        max-width: 900px !important;
    }
    .result-text {
        font-size: 1.1em;
        padding: 1em;
        background: #f7f7f7;
        border-radius: 8px;
    }
    """

    with gr.Blocks(css=css, title="Face Attributes") as demo:
        gr.Markdown(
            """
            # Gender, Age & Expression

            Runs three on-device classifiers on a 128x128 version of the image:
            **gender** (Male/Female), **age group** (Child/Adult/Elderly) and
            **expression** (Angry, Disgust, Fear, Happy, Neutral, Sad, Surprise).
            """
        )

        current_index = gr.State(0)
        title, preview, idle = show_image(0)

        with gr.Tab("Evaluation images"):
            image_title = gr.Markdown(title)
            image_view = gr.Image(value=preview, height=200, interactive=False, show_label=False)
            prediction_text = gr.Textbox(value=idle, lines=6, show_label=False, elem_classes=["result-text"])

            with gr.Row():
                run_btn = gr.Button("Run Age, Gender & Expression Model", variant="primary")
                next_btn = gr.Button("Next image")

            run_btn.click(fn=run_model, inputs=[current_index], outputs=[prediction_text])
            next_btn.click(
                fn=next_image,
                inputs=[current_index],
                outputs=[current_index, image_title, image_view, prediction_text],
            )

        with gr.Tab("Upload"):
            with gr.Row():
                with gr.Column(scale=1):
                    image_input = gr.Image(label="Upload Face Image", type="numpy", height=300)
                    upload_btn = gr.Button("Predict", variant="primary")

                with gr.Column(scale=1):
                    upload_text = gr.Textbox(label="Result", lines=6, elem_classes=["result-text"])

            upload_btn.click(fn=run_upload, inputs=[image_input], outputs=[upload_text])

    return demo


# Create the demo
demo = create_demo()

if __name__ == "__main__":
    demo.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=IS_HF_SPACE,  # Auto-share if running in HF Spaces
        show_error=True
    )

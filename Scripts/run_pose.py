import argparse
import logging
from typing import Optional

import cv2

from pose_kit import (
    KEYPOINT_NAMES,
    LiveRunner,
    OpenCVSurface,
    PreprocessConfig,
    RenderStyle,
    TensorArena,
    draw_pose,
    load_pipeline,
    load_run_config,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a single-subject YOLO pose model and draw box + keypoints.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--config", default=None, help="Optional JSON run config (overrides --model/--backend/--conf).")
    parser.add_argument("--model", default="models/yolov8n-pose.onnx", help="Path to a pose model (.onnx/.torchscript).")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument("--imgsz", type=int, default=640, help="Model input size when the backend cannot report it.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold for box and keypoints.")
    parser.add_argument("--show", action="store_true", help="Show a window with the visualization.")
    parser.add_argument("--out", default=None, help="Optional output path (image or video) to save the visualization.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    model_path, backend, imgsz, conf, radius = args.model, args.backend, args.imgsz, args.conf, 5
    bgr_input = True
    preprocess_cfg: Optional[PreprocessConfig] = None
    if args.config:
        run_cfg = load_run_config(args.config)
        model_path, backend, imgsz = run_cfg.model_path, run_cfg.backend, run_cfg.input_size
        conf, radius = run_cfg.conf_threshold, run_cfg.keypoint_radius
        bgr_input = run_cfg.bgr_to_rgb
        if run_cfg.layout is not None:
            preprocess_cfg = PreprocessConfig(layout=run_cfg.layout, bgr_to_rgb=run_cfg.bgr_to_rgb)

    if imgsz < 32:
        raise ValueError("--imgsz must be >= 32")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    pipeline = load_pipeline(
        model_path,
        backend=backend,
        preprocess_cfg=preprocess_cfg,
        bgr_input=bgr_input,
        arena=TensorArena(),
        input_size=imgsz,
    )
    style = RenderStyle(keypoint_radius=radius)

    image_path = args.image or (None if (args.video is not None or args.webcam is not None) else "media/person.jpg")

    if image_path is not None:
        img = cv2.imread(image_path)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {image_path}")

        det = pipeline(img)
        vis = draw_pose(img, det, threshold=conf, style=style)
        if args.out:
            ok = cv2.imwrite(args.out, vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {args.out}")

        if args.show:
            cv2.imshow("pose", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

        print("score", round(det.score, 4), "box", tuple(round(v, 1) for v in det.as_xyxy()))
        for name, kp in zip(KEYPOINT_NAMES, det.keypoints):
            if kp.confidence > conf:
                print(f"  {name:<15} ({kp.x:.1f}, {kp.y:.1f}) conf={kp.confidence:.2f}")
        return 0

    # Video/webcam path
    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cam_index = 0 if args.webcam is None else int(args.webcam)
        cap = cv2.VideoCapture(cam_index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {cam_index}")

    fps = cap.get(cv2.CAP_PROP_FPS)
    if fps is None or fps <= 0:
        fps = 30.0

    surface = OpenCVSurface(style)
    writer = None
    runner: Optional[LiveRunner] = None

    def on_frame(det, surf) -> None:
        nonlocal writer
        # Below-threshold frames leave the last drawn canvas untouched.
        vis = surf.canvas
        if vis is None:
            return
        if args.out and writer is None:
            h, w = vis.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"mp4v")
            writer = cv2.VideoWriter(args.out, fourcc, fps, (w, h))
            if not writer.isOpened():
                raise RuntimeError(f"Failed to open video writer: {args.out}")
        if writer is not None:
            writer.write(vis)
        if args.show:
            cv2.imshow("pose", vis)
            key = cv2.waitKey(1) & 0xFF
            if key in (27, ord("q")):
                runner.stop()

    runner = LiveRunner(pipeline, cap, surface, threshold=conf, keypoint_radius=radius, on_frame=on_frame)
    try:
        processed = runner.run(max_frames=args.max_frames)
    finally:
        if writer is not None:
            writer.release()
        if args.show:
            cv2.destroyAllWindows()

    print(f"frames processed: {processed}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

import time
from pathlib import Path

import orjson
import pandas as pd
import streamlit as st

from stringsift.eval.harness import evaluate_synthetic
from stringsift.inference import classify_bytes, results_to_arrow
from stringsift.manifest import load_manifest, validate_manifest
from stringsift.model import InvalidModelError, load_model
from stringsift.scanner import ScanConfig
from stringsift.training.logistic import LogisticTrainingConfig, train_logistic


def main() -> None:
    st.title("stringsift: Scan, Validate, and Train")
    st.caption(
        "Upload a binary to see which carved strings the model keeps, validate a model manifest, "
        "or run a tiny synthetic training job."
    )
    st.info("Tip: use the CLI for large files; this UI is meant for small samples and demos.")
    st.session_state.setdefault("scan_logs", [])
    st.session_state.setdefault("train_logs", [])

    tabs = st.tabs(["Scan", "Validate", "Train"])

    with tabs[0]:
        st.subheader("Scan binary")
        model_path = st.text_input("Model path", "artifacts/strings/string_model.json")
        min_length = st.number_input("Minimum length", min_value=1, value=4, step=1)
        threshold = st.slider("Threshold", 0.0, 1.0, 0.5, 0.01)
        show_all = st.checkbox("Show gibberish too", value=False)
        fmt = st.selectbox("Download format", ["json", "arrow"], key="scan_fmt")

        uploaded = st.file_uploader("Upload binary", key="scan_file")
        if uploaded:
            data = uploaded.read()
            if len(data) > 5_000_000:
                st.warning("Uploaded file is large (>5MB). Use the CLI for big runs.")
            try:
                model = load_model(Path(model_path))
            except (InvalidModelError, OSError) as exc:
                st.error(f"Could not load model: {exc}")
                st.stop()
            start = time.time()
            results = classify_bytes(
                data,
                model,
                config=ScanConfig(min_length=int(min_length)),
                threshold=threshold,
                only_interesting=not show_all,
            )
            elapsed = time.time() - start
            st.success(f"Scan: {elapsed:.3f}s | strings: {len(results)}")

            table = pd.DataFrame([r.to_mapping() for r in results])
            st.dataframe(table, height=400)
            if not table.empty:
                type_counts = table["string_type"].value_counts()
                st.bar_chart(type_counts)
                st.write(f"Average probability: {table['probability'].mean():.3f}")

            st.session_state["scan_logs"].append(
                {"bytes": len(data), "strings": len(results), "seconds": elapsed}
            )
            st.markdown("**Recent scans**")
            st.dataframe(pd.DataFrame(st.session_state["scan_logs"]).tail(5))

            if fmt == "json":
                buf = orjson.dumps([r.to_mapping() for r in results])
                st.download_button("Download JSON", buf, file_name="strings.json")
            else:
                arrow_path = Path("tmp.arrow")
                results_to_arrow(results, arrow_path)
                st.download_button(
                    "Download Arrow", arrow_path.read_bytes(), file_name="strings.arrow"
                )

    with tabs[1]:
        st.subheader("Validate model manifest")
        manifest_file = st.file_uploader(
            "Upload manifest (json/yaml)", type=["json", "yml", "yaml"]
        )
        if manifest_file:
            tmp_path = Path("uploaded_manifest" + Path(manifest_file.name).suffix)
            tmp_path.write_bytes(manifest_file.read())
            mf = load_manifest(tmp_path)
            result = validate_manifest(mf)
            st.json(result)
            if not result["warnings"]:
                summary = evaluate_synthetic(load_model(mf.path))["evaluation"]
                st.markdown("**Synthetic eval summary**")
                st.json(summary.__dict__)

    with tabs[2]:
        st.subheader("Train (small demo)")
        epochs = st.number_input("Epochs", min_value=1, value=5, step=1)
        samples = st.number_input("Synthetic samples", min_value=8, value=256, step=8)
        output_dir = st.text_input("Output dir", "artifacts/ui-strings")
        if st.button("Run tiny training (synthetic)"):
            cfg = LogisticTrainingConfig(
                output_dir=Path(output_dir), samples=int(samples), epochs=int(epochs)
            )
            start = time.time()
            metrics = train_logistic(cfg)
            elapsed = time.time() - start
            st.json(metrics)
            st.success(f"Training completed in {elapsed:.2f}s; model at {metrics['model_json']}")
            st.session_state["train_logs"].append(
                {"epochs": epochs, "samples": samples, "seconds": elapsed}
            )
        if st.session_state["train_logs"]:
            st.markdown("**Recent training runs**")
            st.dataframe(pd.DataFrame(st.session_state["train_logs"]).tail(5))


if __name__ == "__main__":
    main()

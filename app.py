from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from jove.config import get_settings
from jove.db import get_connection, init_db
from jove.logging_config import setup_logging
from jove.ui import customizer, pricing_admin


# Load environment variables from local .env file.
load_dotenv(dotenv_path=Path(__file__).parent / ".env")


st.set_page_config(page_title="Maison Jove Pricing", page_icon="💍", layout="wide")


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)

    st.title("💍 Maison Jove Pricing")
    st.caption("Market prices and variant photos for custom jewellery")

    conn = get_connection(settings.db_path)
    init_db(conn)

    page = st.sidebar.radio(
        "Navigate",
        [
            "Customizer Preview",
            "Pricing Admin",
        ],
    )

    if page == "Customizer Preview":
        customizer.render(conn)
    elif page == "Pricing Admin":
        pricing_admin.render(conn)


if __name__ == "__main__":
    main()

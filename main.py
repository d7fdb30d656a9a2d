"""
VariantLens - variant resolution and structural evidence API

Run with:
    uvicorn main:app --reload --port 8000
"""
from variantlens.main import create_app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)

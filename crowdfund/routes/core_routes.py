from flask import Blueprint, jsonify

core = Blueprint("core", __name__)


@core.get("/")
def root():
    return jsonify({"service": "crowdfund-api", "ok": True})


@core.get("/api/health")
def health():
    return jsonify({"status": "ok"}), 200
